import asyncio
import logging
from datetime import datetime
from typing import Dict, Mapping

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.event import async_track_point_in_utc_time
from homeassistant.util import dt as dt_util

from .const import (
    EVENT_TEMP_GROUP_CANCELLED,
    EVENT_TEMP_GROUP_REVERTED,
    EVENT_TEMP_GROUP_SET,
)
from .directory import GroupDirectory
from .exceptions import CorruptState, InvalidFormat, PersistenceFailure, RevertFailure, SubjectNotFound
from .helpers import format_duration, parse_duration
from .models import TempGroupData
from .store import TempGroupStore

_LOGGER = logging.getLogger(__name__)


class TempGroupManager:
    """Apply temporary groups and revert them when their timers end.

    Every read-modify-persist of the store runs under one lock, shared by the
    service path and the timer path. Each pending subject has at most one
    armed listener.
    """

    def __init__(self, hass: HomeAssistant, store: TempGroupStore, directory: GroupDirectory):
        self.hass = hass
        self.store = store
        self.directory = directory
        self._lock = asyncio.Lock()
        self._unsub_expiration: Dict[str, CALLBACK_TYPE] = {}

    @property
    def timers(self) -> Mapping[str, TempGroupData]:
        return self.store.data

    def is_armed(self, subject_key: str) -> bool:
        return subject_key in self._unsub_expiration

    async def async_load_and_resume(self):
        """Restore timers from storage and resume them."""
        try:
            await self.store.async_load()
        except CorruptState as err:
            # starting with no timers beats not starting at all
            _LOGGER.error("Discarding stored temporary groups: %s", err)
        await self.async_resume_all()

    async def async_resume_all(self):
        """Revert what expired while we were down and re-arm the rest."""
        now = dt_util.utcnow()
        for subject_key, entry in list(self.store.data.items()):
            if entry.is_expired(now):
                _LOGGER.info("Temporary group of %s expired while offline, reverting", subject_key)
                await self._async_revert(subject_key, entry)
                continue

            async with self._lock:
                if self.store.data.get(subject_key) is entry:
                    self._arm(subject_key, entry)

    async def async_set_temp_group(self, subject: str, group: str, duration: str) -> TempGroupData:
        """Put a subject in `group` for `duration`, then revert automatically."""
        seconds = parse_duration(duration)
        user = await self.directory.async_resolve(subject)
        await self.directory.async_validate_group(group)

        async with self._lock:
            if (pending := self.store.data.get(user.id)) is not None:
                # keep the pre-elevation baseline, not the intermediate group
                original_group = pending.original_group
            else:
                original_group = await self.directory.async_current_group(user.id)

            try:
                entry = TempGroupData.from_duration(user.id, original_group, seconds)
            except OverflowError as err:
                raise InvalidFormat(f"Duration '{duration}' is too large") from err

            if not await self.directory.async_set_group(user.id, group):
                raise HomeAssistantError(f"Unable to move {user.name} to group {group}")

            await self._async_persist(self.store.async_set, user.id, entry)
            self._arm(user.id, entry)

        _LOGGER.info(
            "Temporarily set %s to %s for %s. Original group: %s",
            user.name, group, format_duration(seconds), original_group,
        )
        self.hass.bus.async_fire(EVENT_TEMP_GROUP_SET, {
            "subject": user.id,
            "name": user.name,
            "group": group,
            "original_group": original_group,
            "expires": entry.expiry.isoformat(),
        })
        return entry

    async def async_cancel(self, subject: str, revert: bool = True) -> TempGroupData:
        """Drop a pending timer, optionally restoring the original group now."""
        user = await self.directory.async_resolve(subject)

        async with self._lock:
            entry = self.store.data.get(user.id)
            if entry is None:
                raise SubjectNotFound(f"No temporary group pending for {subject}")

            # on failure the armed timer stays and will still revert at expiry
            if revert and not await self.directory.async_set_group(user.id, entry.original_group):
                raise RevertFailure(f"Unable to restore {user.name} to {entry.original_group}")
            self._disarm(user.id)
            await self._async_persist(self.store.async_remove, user.id)

        _LOGGER.info("Temporary group of %s was cancelled manually", user.name)
        self.hass.bus.async_fire(EVENT_TEMP_GROUP_CANCELLED, {
            "subject": user.id,
            "original_group": entry.original_group,
            "reverted": revert,
        })
        return entry

    async def async_shutdown(self):
        """Stop all listeners. Stored timers stay for the next start."""
        async with self._lock:
            for subject_key in list(self._unsub_expiration):
                self._disarm(subject_key)

    @callback
    def _arm(self, subject_key: str, entry: TempGroupData):
        self._disarm(subject_key)
        _LOGGER.debug(
            "Starting timer for %s with delay %s",
            subject_key, format_duration(int(entry.remaining.total_seconds())),
        )
        self._unsub_expiration[subject_key] = async_track_point_in_utc_time(
            self.hass,
            self._async_on_expiration(subject_key, entry),
            entry.expiry,
        )

    @callback
    def _disarm(self, subject_key: str):
        if (unsub := self._unsub_expiration.pop(subject_key, None)) is not None:
            unsub()

    @callback
    def _async_on_expiration(self, subject_key: str, entry: TempGroupData):
        async def _async_expired(now: datetime):
            await self._async_revert(subject_key, entry)
        return _async_expired

    async def _async_revert(self, subject_key: str, entry: TempGroupData):
        async with self._lock:
            # a replaced or cancelled timer must not touch the newer state
            if self.store.data.get(subject_key) is not entry:
                _LOGGER.debug("Ignoring stale timer for %s", subject_key)
                return

            self._unsub_expiration.pop(subject_key, None)

            if not await self.directory.async_set_group(subject_key, entry.original_group):
                _LOGGER.error(
                    "Could not revert %s to %s; will retry on next start",
                    subject_key, entry.original_group,
                )
                return

            await self._async_persist(self.store.async_remove, subject_key)

        _LOGGER.info("Reverted %s to %s after expiration.", subject_key, entry.original_group)
        self.hass.bus.async_fire(EVENT_TEMP_GROUP_REVERTED, {
            "subject": subject_key,
            "original_group": entry.original_group,
        })

    async def _async_persist(self, method, *args):
        try:
            await method(*args)
        except PersistenceFailure as err:
            _LOGGER.error("%s; change kept in memory only", err)
