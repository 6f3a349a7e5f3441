"""Application-wide logging initialization

IMPORTANT: Call `initialize_logging()` once at process start (the sweeper's
`main()` does) before any other logging is done. Library code only ever calls
`logging.getLogger(__name__)`.

Every line on stdout is one JSON object:
{
    "timestamp": "2025-12-26T12:00:00.000Z",
    "level": "WARNING",
    "logger": "linkminter.dao.sqlite.link_sqlite_dao",
    "message": "Resetting corrupt link record during mint.",
    "token": "abc123",
    "event": "corrupt_record_reset"
}

Fields passed through `extra=` are copied as is. Records logged with
`exc_info` (e.g. `logger.exception(...)`) carry the formatted traceback
under "exception".
"""

import os
import json
import logging
import logging.config
from datetime import datetime, UTC

from linkminter.constants import ENV


# Attributes every LogRecord has; anything else on a record came from `extra=`
RESERVED_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {'message', 'asctime', 'taskName'}


class JsonFormatter(logging.Formatter):
    """Render a LogRecord and its `extra` fields as a single JSON line"""

    @staticmethod
    def timestamp(record: logging.LogRecord) -> str:
        moment = datetime.fromtimestamp(record.created, tz=UTC)
        return moment.isoformat(timespec='milliseconds').replace('+00:00', 'Z')

    @staticmethod
    def extras(record: logging.LogRecord) -> dict:
        return {key: value for key, value in record.__dict__.items() if key not in RESERVED_ATTRS}

    def format(self, record: logging.LogRecord) -> str:
        log = {
            'timestamp': self.timestamp(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            **self.extras(record),
        }
        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)

        # Extras may hold bytes or datetimes
        return json.dumps(log, default=str)


def initialize_logging(level: str | None = None) -> None:
    """Route the root logger to stdout through JsonFormatter

    Loggers created before the call (module-level `logger` objects) stay enabled.

    Args:
        level (str | None):
            Log level name. Defaults to `LOG_LEVEL`, then 'INFO'.
    """
    log_level = (level or os.getenv(ENV.App.LOG_LEVEL, 'INFO')).upper()
    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {'json': {'()': JsonFormatter}},
            'handlers': {
                'stdout': {
                    'class': 'logging.StreamHandler',
                    'formatter': 'json',
                    'stream': 'ext://sys.stdout',
                },
            },
            'root': {'level': log_level, 'handlers': ['stdout']},
        }
    )
