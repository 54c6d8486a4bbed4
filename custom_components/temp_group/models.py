from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict

from homeassistant.util import dt as dt_util

from .const import EXPIRY_TIME, ORIGINAL_GROUP


@dataclass(frozen=True)
class TempGroupData:
    """A pending reversion of one subject back to its original group."""
    subject_key: str        # HA user id of the subject
    original_group: str     # group id to restore when the timer ends
    expiry: datetime = field(default_factory=dt_util.utcnow)  # When to revert (UTC)

    @classmethod
    def from_duration(cls, subject_key: str, original_group: str, seconds: int) -> "TempGroupData":
        """Create an entry that expires `seconds` from now."""
        return cls(
            subject_key=subject_key,
            original_group=original_group,
            expiry=dt_util.utcnow() + timedelta(seconds=seconds),
        )

    @property
    def remaining(self) -> timedelta:
        """Time left until expiry, never negative."""
        return max(timedelta(0), self.expiry - dt_util.utcnow())

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or dt_util.utcnow()) >= self.expiry

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            EXPIRY_TIME: dt_util.as_utc(self.expiry).isoformat(),
            ORIGINAL_GROUP: self.original_group,
        }

    @classmethod
    def from_dict(cls, subject_key: str, data: Dict[str, Any]) -> "TempGroupData":
        """Create instance from a stored dictionary.

        Raises KeyError, TypeError or ValueError when the record is malformed.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Timer record for {subject_key} is not an object")

        original_group = data[ORIGINAL_GROUP]
        if not isinstance(original_group, str):
            raise TypeError(f"OriginalGroup for {subject_key} is not a string")

        expiry = dt_util.parse_datetime(data[EXPIRY_TIME])
        if expiry is None:
            raise ValueError(f"ExpiryTime for {subject_key} is not an ISO-8601 timestamp")
        # timestamps written without an offset are UTC
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=dt_util.UTC)

        return cls(
            subject_key=subject_key,
            original_group=original_group,
            expiry=dt_util.as_utc(expiry),
        )
