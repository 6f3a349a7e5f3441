"""Expiry sweeper: background removal of expired and corrupt link records

The sweeper runs one store transaction per cycle (see LinkBaseDAO.sweep) and
never terminates on a failed cycle. A missed cycle only leaves stale records
around until the next successful one; readers already treat them as gone.

Classes:
    ExpirySweeper:
        Periodic loop around LinkBaseDAO.sweep().

Functions:
    run_sweeper(app_config=None, stop_event=None) -> None
        Open the configured store and sweep until `stop_event` is set.
    main() -> None
        Process entrypoint: `python -m linkminter.sweeper`.

Example:
    >>> sweeper = ExpirySweeper(dao, interval=60)
    >>> thread = sweeper.start()
    >>> ...
    >>> sweeper.stop()
    >>> thread.join()
"""

import logging
import threading

from linkminter.types import AppConfig
from linkminter.models import SweepSummaryModel
from linkminter.dao.base import LinkBaseDAO
from linkminter.dao.factory import build_link_dao
from linkminter.utils.config import load_config
from linkminter.utils.logging import initialize_logging
from linkminter.constants import SWEEP_FAILURE, SWEEP_SUCCESS, Sweeper


logger = logging.getLogger(__name__)


class ExpirySweeper:
    def __init__(self, dao: LinkBaseDAO, interval: float = Sweeper.INTERVAL, stop_event: threading.Event | None = None):
        if interval <= 0:
            raise ValueError(f'Sweep interval must be positive (given value: {interval}).')
        self.dao = dao
        self.interval = interval
        self.stop_event = stop_event or threading.Event()

    def sweep_once(self) -> SweepSummaryModel | None:
        """Run one sweep cycle

        Returns:
            SweepSummaryModel | None:
                What was removed, or None when the cycle failed (already logged).
        """
        try:
            summary = self.dao.sweep()
        except Exception as error:  # noqa: BLE001 a failed cycle must not stop the loop
            logger.exception(
                'Sweep cycle failed; retrying next tick.',
                extra={'operation': 'sweep', 'event': SWEEP_FAILURE, 'error': getattr(error, 'error_code', type(error).__name__)},
            )
            return None

        if summary.removed:
            logger.info(
                'expired %d keys',
                summary.removed,
                extra={
                    'operation': 'sweep',
                    'event': SWEEP_SUCCESS,
                    'expired': summary.expired,
                    'corrupt': summary.corrupt,
                    'urls': summary.urls,
                },
            )
        return summary

    def run(self) -> None:
        """Sweep every `interval` seconds until stop() is called (blocking)."""
        logger.info('Expiry sweeper started.', extra={'interval': self.interval})
        while not self.stop_event.is_set():
            self.sweep_once()
            self.stop_event.wait(self.interval)
        logger.info('Expiry sweeper stopped.')

    def start(self) -> threading.Thread:
        """Run the loop on a daemon thread and return the thread."""
        thread = threading.Thread(target=self.run, name='expiry-sweeper', daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        self.stop_event.set()


def run_sweeper(app_config: AppConfig | None = None, stop_event: threading.Event | None = None) -> None:
    """Open the configured store and run the sweeper loop

    Blocks until `stop_event` is set, i.e. forever when none is given.

    Raises:
        ConfigurationError:
            If the configuration cannot be loaded.
        DataStoreError:
            If the store cannot be opened. Failures after startup are logged, not raised.
    """
    app_config = app_config or load_config()
    dao = build_link_dao(app_config)
    ExpirySweeper(dao, interval=app_config['sweeper']['interval_seconds'], stop_event=stop_event).run()


def main() -> None:  # pragma: no cover
    initialize_logging()
    run_sweeper()


if __name__ == '__main__':  # pragma: no cover
    main()
