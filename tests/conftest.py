"""Fixtures for Temp Group tests."""
import pytest

from homeassistant.core import HomeAssistant

from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.temp_group.const import DOMAIN
from custom_components.temp_group.directory import GroupDirectory
from custom_components.temp_group.manager import TempGroupManager
from custom_components.temp_group.store import TempGroupStore


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Let HA load integrations from custom_components/."""
    yield


@pytest.fixture
async def alice(hass: HomeAssistant):
    return await hass.auth.async_create_user("Alice", group_ids=["system-users"])


@pytest.fixture
async def bob(hass: HomeAssistant):
    return await hass.auth.async_create_user("Bob", group_ids=["system-read-only"])


@pytest.fixture
async def manager(hass: HomeAssistant) -> TempGroupManager:
    manager = TempGroupManager(hass, TempGroupStore(hass), GroupDirectory(hass))
    yield manager
    await manager.async_shutdown()


@pytest.fixture
def config_entry(hass: HomeAssistant) -> MockConfigEntry:
    entry = MockConfigEntry(domain=DOMAIN, title="Temporary Groups", data={})
    entry.add_to_hass(hass)
    return entry
