import logging
import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.helpers import config_validation as cv

from .const import (
    ATTR_DURATION,
    ATTR_GROUP,
    ATTR_REVERT,
    ATTR_SUBJECT,
    DOMAIN,
    SENSOR,
    SERVICE_CANCEL_TEMPGROUP,
    SERVICE_TEMPGROUP,
    SERVICE_TEMPGROUP_ALIAS,
)
from .directory import GroupDirectory
from .helpers import format_duration
from .manager import TempGroupManager
from .store import TempGroupStore

_LOGGER = logging.getLogger(__name__)

TEMPGROUP_SCHEMA = vol.Schema({
    vol.Required(ATTR_SUBJECT): cv.string,
    vol.Required(ATTR_GROUP): cv.string,
    vol.Required(ATTR_DURATION): cv.string,
})

CANCEL_TEMPGROUP_SCHEMA = vol.Schema({
    vol.Required(ATTR_SUBJECT): cv.string,
    vol.Optional(ATTR_REVERT, default=True): cv.boolean,
})


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    manager = TempGroupManager(hass, TempGroupStore(hass), GroupDirectory(hass))

    # revert whatever expired while HA was down, re-arm the rest
    await manager.async_load_and_resume()

    # store the manager in hass.data so sensor.py can access it
    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = manager

    async def async_tempgroup(call: ServiceCall) -> ServiceResponse:
        """Service to put a user in a group for a limited time."""
        subject = call.data[ATTR_SUBJECT]
        group = call.data[ATTR_GROUP]
        duration = call.data[ATTR_DURATION]

        timer = await manager.async_set_temp_group(subject, group, duration)
        name = await manager.directory.async_display_name(timer.subject_key)
        message = f"Temporarily set {name} to {group} for {duration}."

        if not call.return_response:
            return None
        return {
            "message": message,
            "subject": timer.subject_key,
            "group": group,
            "original_group": timer.original_group,
            "expires": timer.expiry.isoformat(),
            "remaining": format_duration(int(timer.remaining.total_seconds())),
        }

    async def async_cancel_tempgroup(call: ServiceCall) -> None:
        """Service to end a temporary group before its timer runs out."""
        await manager.async_cancel(call.data[ATTR_SUBJECT], revert=call.data[ATTR_REVERT])

    # Register services
    for service_name in (SERVICE_TEMPGROUP, SERVICE_TEMPGROUP_ALIAS):
        hass.services.async_register(
            DOMAIN,
            service_name,
            async_tempgroup,
            schema=TEMPGROUP_SCHEMA,
            supports_response=SupportsResponse.OPTIONAL,
        )
    hass.services.async_register(
        DOMAIN, SERVICE_CANCEL_TEMPGROUP, async_cancel_tempgroup, schema=CANCEL_TEMPGROUP_SCHEMA
    )

    # Forward the config entry to the sensor platform
    await hass.config_entries.async_forward_entry_setups(entry, [SENSOR])

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, [SENSOR])

    if unload_ok:
        manager: TempGroupManager = hass.data[DOMAIN].pop(entry.entry_id)
        # stop listeners only; pending reversions resume on the next setup
        await manager.async_shutdown()

        for service_name in (SERVICE_TEMPGROUP, SERVICE_TEMPGROUP_ALIAS, SERVICE_CANCEL_TEMPGROUP):
            hass.services.async_remove(DOMAIN, service_name)

    return unload_ok
