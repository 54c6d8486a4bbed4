import logging
from types import MappingProxyType
from typing import Dict, Mapping

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from .const import STORAGE_KEY, STORAGE_VERSION
from .exceptions import CorruptState, PersistenceFailure
from .models import TempGroupData

_LOGGER = logging.getLogger(__name__)


class TempGroupStore:
    """Whole-snapshot storage of pending reversions.

    The in-memory mapping is written out in full on every mutation. Callers
    are expected to serialize access; the store itself does no locking.
    """

    def __init__(self, hass: HomeAssistant, key: str = STORAGE_KEY):
        """Initialize the timer store."""
        self._store = Store(hass, STORAGE_VERSION, key)
        self._data: Dict[str, TempGroupData] = {}

    @property
    def data(self) -> Mapping[str, TempGroupData]:
        """Read-only view of the pending reversions."""
        return MappingProxyType(self._data)

    async def async_load(self) -> Dict[str, TempGroupData]:
        """Load all timers from storage.

        Returns an empty mapping when nothing has been stored yet and raises
        CorruptState when the stored image cannot be parsed. A file that is
        not valid JSON at all is moved aside by Store and loads as empty.
        """
        try:
            data = await self._store.async_load()
        # Store indexes its own envelope and refuses newer versions
        except (HomeAssistantError, OSError, KeyError, TypeError, ValueError, NotImplementedError) as err:
            raise CorruptState(f"Unable to read {self._store.key}: {err}") from err

        if data is None:
            self._data = {}
            return {}

        if not isinstance(data, dict):
            raise CorruptState(f"{self._store.key} does not contain an object")

        try:
            timers = {
                subject_key: TempGroupData.from_dict(subject_key, record)
                for subject_key, record in data.items()
            }
        except (KeyError, TypeError, ValueError) as err:
            raise CorruptState(f"Malformed timer in {self._store.key}: {err!r}") from err

        self._data = dict(timers)
        _LOGGER.debug("Loaded %d timer(s) from %s", len(timers), self._store.key)
        return timers

    async def async_save(self, timers: Mapping[str, TempGroupData] | None = None):
        """Save timers to storage, replacing the previous image.

        Store logs and swallows most write errors itself; PersistenceFailure
        covers the ones that still reach us.
        """
        if timers is not None:
            self._data = dict(timers)

        data = {subject_key: entry.to_dict() for subject_key, entry in self._data.items()}
        try:
            await self._store.async_save(data)
        except (HomeAssistantError, OSError, TypeError, ValueError) as err:
            raise PersistenceFailure(f"Unable to write {self._store.key}: {err}") from err

    async def async_set(self, subject_key: str, entry: TempGroupData):
        """Replace the timer for a subject and save."""
        self._data[subject_key] = entry
        await self.async_save()

    async def async_remove(self, subject_key: str) -> TempGroupData | None:
        """Delete the timer for a subject and save."""
        entry = self._data.pop(subject_key, None)
        if entry is not None:
            await self.async_save()
        return entry
