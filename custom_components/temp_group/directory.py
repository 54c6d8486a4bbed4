import logging

from homeassistant.auth.models import User
from homeassistant.core import HomeAssistant

from .exceptions import GroupNotFound, SubjectNotFound

_LOGGER = logging.getLogger(__name__)


class GroupDirectory:
    """Read and change the auth group of Home Assistant users.

    Group changes go straight to the auth manager, so they apply the same way
    whether or not the user currently has a session open.
    """

    def __init__(self, hass: HomeAssistant):
        self.hass = hass

    async def async_resolve(self, subject: str) -> User:
        """Find a user by id, then by name (exact before case-insensitive)."""
        if (user := await self.hass.auth.async_get_user(subject)) is not None:
            if not user.system_generated:
                return user

        users = [u for u in await self.hass.auth.async_get_users() if not u.system_generated]
        for user in users:
            if user.name == subject:
                return user

        folded = subject.casefold()
        matches = [u for u in users if u.name and u.name.casefold() == folded]
        if len(matches) == 1:
            return matches[0]

        raise SubjectNotFound(f"Player not found: {subject}")

    async def async_validate_group(self, group: str):
        if await self.hass.auth.async_get_group(group) is None:
            raise GroupNotFound(f"Group not found: {group}")

    async def async_current_group(self, subject_key: str) -> str:
        """Return the group id the user is in right now."""
        user = await self.hass.auth.async_get_user(subject_key)
        if user is None:
            raise SubjectNotFound(f"Player not found: {subject_key}")
        # HA allows several groups per user; the first one is the primary one
        return user.groups[0].id if user.groups else ""

    async def async_set_group(self, subject_key: str, group: str) -> bool:
        """Move the user into a single group. Returns False on failure."""
        user = await self.hass.auth.async_get_user(subject_key)
        if user is None:
            _LOGGER.error("Cannot set group %s: user %s no longer exists", group, subject_key)
            return False

        try:
            await self.hass.auth.async_update_user(user, group_ids=[group] if group else [])
        except (ValueError, KeyError) as err:
            _LOGGER.error("Failed to set group of %s to %s: %s", user.name, group, err)
            return False

        _LOGGER.debug("User %s is now in group %s", user.name, group or "<none>")
        return True

    async def async_display_name(self, subject_key: str) -> str:
        user = await self.hass.auth.async_get_user(subject_key)
        return user.name if user is not None and user.name else subject_key
