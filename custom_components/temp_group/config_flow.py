from typing import Any

from homeassistant.config_entries import ConfigFlow, ConfigFlowResult

from .const import DOMAIN


class TempGroupConfigFlow(ConfigFlow, domain=DOMAIN):
    """Set up the one Temp Group instance of an installation."""
    VERSION = 1

    async def async_step_user(self, user_input: dict[str, Any] | None = None) -> ConfigFlowResult:
        # pending timers live in one store per installation
        self._async_abort_entries_match()

        if user_input is None:
            return self.async_show_form(step_id="user")
        return self.async_create_entry(title="Temporary Groups", data={})
