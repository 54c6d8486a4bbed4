import logging
from typing import Any, Dict

from homeassistant.config_entries import ConfigEntry
from homeassistant.components.sensor import SensorEntity
from homeassistant.core import HomeAssistant, Event, callback
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import (
    DOMAIN,
    EVENT_TEMP_GROUP_CANCELLED,
    EVENT_TEMP_GROUP_REVERTED,
    EVENT_TEMP_GROUP_SET,
    SENSOR,
)
from .manager import TempGroupManager


_LOGGER = logging.getLogger(__name__)


class PendingTempGroupsSensor(SensorEntity):
    """Number of temporary groups waiting to be reverted."""
    _attr_should_poll = False
    _attr_has_entity_name = True
    _attr_icon = "mdi:account-clock"
    _attr_native_unit_of_measurement = "timers"

    def __init__(self, entry: ConfigEntry, manager: TempGroupManager):
        self._manager = manager

        self._attr_unique_id = f"{entry.entry_id}_pending"
        self.entity_id = f"{SENSOR}.{DOMAIN}_pending"
        self._attr_name = "Pending temporary groups"
        self._attr_native_value = 0
        self._attr_extra_state_attributes: Dict[str, Any] = {}

    async def async_added_to_hass(self):
        """Called when the entity is added to Home Assistant."""

        @callback
        def _async_on_timers_changed(event: Event):
            """Refresh on every set, revert or cancel."""
            self.hass.async_create_task(self._async_refresh_and_write())

        for event_type in (EVENT_TEMP_GROUP_SET, EVENT_TEMP_GROUP_REVERTED, EVENT_TEMP_GROUP_CANCELLED):
            # Register the listener and ensure it is cleaned up automatically
            self.async_on_remove(
                self.hass.bus.async_listen(event_type, _async_on_timers_changed)
            )

        await self._async_refresh()

    async def _async_refresh(self):
        timers = dict(self._manager.timers)
        attributes = {}
        for subject_key, timer in timers.items():
            attributes[subject_key] = {
                "name": await self._manager.directory.async_display_name(subject_key),
                "original_group": timer.original_group,
                "expires": timer.expiry.isoformat(),
                # False once a revert has failed and waits for the next start
                "armed": self._manager.is_armed(subject_key),
            }
        self._attr_native_value = len(timers)
        self._attr_extra_state_attributes = attributes

    async def _async_refresh_and_write(self):
        await self._async_refresh()
        self.async_write_ha_state()


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback
) -> None:
    """Set up the pending temporary groups sensor."""
    # Retrieve the manager we stored in __init__.py
    manager: TempGroupManager = hass.data[DOMAIN][entry.entry_id]

    async_add_entities([PendingTempGroupsSensor(entry, manager)])
