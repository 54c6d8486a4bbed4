"""Errors raised by the Temp Group integration."""
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError


class InvalidFormat(ServiceValidationError):
    """Duration string does not match <number>[s/m/h/d]."""


class SubjectNotFound(ServiceValidationError):
    """Subject cannot be resolved to a Home Assistant user."""


class GroupNotFound(ServiceValidationError):
    """Group id is not known to the auth manager."""


class CorruptState(HomeAssistantError):
    """Stored timers exist but cannot be read back."""


class PersistenceFailure(HomeAssistantError):
    """Stored timers could not be written."""


class RevertFailure(HomeAssistantError):
    """The directory refused to restore a subject's original group."""
