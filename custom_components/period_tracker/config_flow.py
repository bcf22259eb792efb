"""Config flow for period tracker."""

from __future__ import annotations

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers import selector

from .const import CONF_PREDICTION_LENGTH, DEFAULT_PREDICTION_LENGTH, DOMAIN

_PREDICTION_LENGTH_SELECTOR = selector.NumberSelector(
    selector.NumberSelectorConfig(
        min=1, max=14, step=1, mode=selector.NumberSelectorMode.BOX
    )
)


class PeriodTrackerFlowHandler(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for the integration."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict | None = None
    ) -> config_entries.ConfigFlowResult:
        """Handle the initial step."""
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()
        if user_input is not None:
            return self.async_create_entry(
                title="Period Tracker",
                data={},
                options={
                    CONF_PREDICTION_LENGTH: int(user_input[CONF_PREDICTION_LENGTH])
                },
            )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_PREDICTION_LENGTH, default=DEFAULT_PREDICTION_LENGTH
                    ): _PREDICTION_LENGTH_SELECTOR,
                }
            ),
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        return OptionsFlowHandler()


class OptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options for the integration."""

    async def async_step_init(
        self, user_input: dict | None = None
    ) -> config_entries.ConfigFlowResult:
        if user_input is not None:
            return self.async_create_entry(
                data={CONF_PREDICTION_LENGTH: int(user_input[CONF_PREDICTION_LENGTH])}
            )

        current = self.config_entry.options
        return self.async_show_form(
            step_id="init",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        CONF_PREDICTION_LENGTH,
                        default=current.get(
                            CONF_PREDICTION_LENGTH, DEFAULT_PREDICTION_LENGTH
                        ),
                    ): _PREDICTION_LENGTH_SELECTOR,
                }
            ),
        )
