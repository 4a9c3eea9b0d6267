"""Configuration modules for the FHIR server."""

from fhir_server.config.logging import configure_logging, get_logger
from fhir_server.config.settings import Settings, get_settings, reset_settings

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
]
