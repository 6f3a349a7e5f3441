import json
from dataclasses import dataclass
from datetime import datetime, UTC

from linkminter.dao.exceptions import CorruptRecordError


@dataclass(frozen=True)
class LinkRecordModel:
    """Represent the record stored under a token.

    Attributes:
        target (str):
            The original long URL that the token redirects to.
        expiry (datetime):
            Timezone-aware moment after which the record is logically gone,
            whether or not the sweeper already removed it.

    Serialized form (shared by every store backend):
        {"url": "<target>", "expiry": "<RFC 3339 timestamp>"}

    Example:
        >>> from datetime import datetime, timedelta, UTC
        >>> record = LinkRecordModel(
        ...     target="https://example.com/article/123",
        ...     expiry=datetime.now(UTC) + timedelta(days=30),
        ... )
        >>> record.expired()
        False
        >>> LinkRecordModel.from_json(record.to_json()) == record
        True
    """

    target: str
    expiry: datetime

    def expired(self, now: datetime | None = None) -> bool:
        """Return True if the expiry lies strictly before `now` (defaults to current UTC time).

        Raises:
            ValueError: If `now` is a naive datetime.
        """
        if now is None:
            now = datetime.now(UTC)
        elif now.utcoffset() is None:
            raise ValueError(f'Expiry checks need a timezone-aware moment, e.g. datetime.now(UTC) (given value: {now!r}).')
        return self.expiry < now

    def to_json(self) -> str:
        return json.dumps({'url': self.target, 'expiry': self.expiry.isoformat()})

    @classmethod
    def from_json(cls, raw: str | bytes) -> 'LinkRecordModel':
        """Decode a serialized link record

        Args:
            raw (str | bytes):
                JSON document as read from the store.

        Returns:
            LinkRecordModel: the decoded record.

        Raises:
            CorruptRecordError:
                If the payload is not a JSON object with a non-empty string `url`
                and a timezone-aware ISO 8601 `expiry`.
        """
        try:
            document = json.loads(raw)
        except (TypeError, ValueError) as e:  # JSONDecodeError and UnicodeDecodeError are ValueErrors
            raise CorruptRecordError(f'Link record is not valid JSON: {raw!r}') from e

        if not isinstance(document, dict):
            raise CorruptRecordError(f'Link record is not a JSON object: {raw!r}')

        target = document.get('url')
        if not isinstance(target, str) or not target:
            raise CorruptRecordError(f"Link record has no usable 'url': {raw!r}")

        expiry = document.get('expiry')
        if not isinstance(expiry, str):
            raise CorruptRecordError(f"Link record has no usable 'expiry': {raw!r}")
        try:
            expiry = datetime.fromisoformat(expiry)
        except ValueError as e:
            raise CorruptRecordError(f"Link record has an unparseable 'expiry': {raw!r}") from e
        if expiry.tzinfo is None:
            raise CorruptRecordError(f"Link record 'expiry' lacks a UTC offset: {raw!r}")

        return cls(target=target, expiry=expiry)
