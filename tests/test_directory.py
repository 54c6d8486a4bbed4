"""Tests for the group directory on top of the HA auth manager."""
import pytest

from homeassistant.core import HomeAssistant

from custom_components.temp_group.directory import GroupDirectory
from custom_components.temp_group.exceptions import GroupNotFound, SubjectNotFound


async def test_resolve_by_id_and_name(hass: HomeAssistant, alice):
    directory = GroupDirectory(hass)

    assert (await directory.async_resolve(alice.id)).id == alice.id
    assert (await directory.async_resolve("Alice")).id == alice.id
    assert (await directory.async_resolve("alice")).id == alice.id


async def test_resolve_exact_name_wins(hass: HomeAssistant):
    upper = await hass.auth.async_create_user("ALICE", group_ids=["system-users"])
    lower = await hass.auth.async_create_user("alice", group_ids=["system-users"])
    directory = GroupDirectory(hass)

    assert (await directory.async_resolve("alice")).id == lower.id
    assert (await directory.async_resolve("ALICE")).id == upper.id
    # ambiguous without an exact match
    with pytest.raises(SubjectNotFound):
        await directory.async_resolve("Alice")


async def test_resolve_unknown_subject(hass: HomeAssistant, alice):
    with pytest.raises(SubjectNotFound):
        await GroupDirectory(hass).async_resolve("mallory")


async def test_resolve_skips_system_users(hass: HomeAssistant):
    system_user = await hass.auth.async_create_system_user("Robot")
    directory = GroupDirectory(hass)

    with pytest.raises(SubjectNotFound):
        await directory.async_resolve("Robot")
    with pytest.raises(SubjectNotFound):
        await directory.async_resolve(system_user.id)


async def test_current_and_set_group(hass: HomeAssistant, alice):
    directory = GroupDirectory(hass)

    assert await directory.async_current_group(alice.id) == "system-users"
    assert await directory.async_set_group(alice.id, "system-admin")
    assert await directory.async_current_group(alice.id) == "system-admin"


async def test_set_unknown_group_fails(hass: HomeAssistant, alice):
    directory = GroupDirectory(hass)

    assert not await directory.async_set_group(alice.id, "no-such-group")
    assert await directory.async_current_group(alice.id) == "system-users"


async def test_set_group_of_deleted_user_fails(hass: HomeAssistant, alice):
    directory = GroupDirectory(hass)
    await hass.auth.async_remove_user(alice)

    assert not await directory.async_set_group(alice.id, "system-admin")


async def test_validate_group(hass: HomeAssistant):
    directory = GroupDirectory(hass)

    await directory.async_validate_group("system-admin")
    with pytest.raises(GroupNotFound):
        await directory.async_validate_group("no-such-group")
