"""
Structured logging for the FHIR server.

structlog renders events from the standard library loggers, so uvicorn's
own output and the ``fhir.audit`` logger share one format. Per-request
context (correlation id, resource being served) is held in structlog's
context variables and merged into every event.
"""

import logging
import sys
import uuid

import structlog

from fhir_server import __version__
from fhir_server.config.settings import Settings, get_settings
from fhir_server.constants import FHIR_VERSION

SERVICE_NAME = "fhir-server"

REQUEST_ID_LENGTH = 8

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("asyncio", "uvicorn.access")


def set_request_id(request_id: str | None = None) -> str:
    """
    Start the log context of a new request.

    Clears context left over from a previous request on the same task and
    binds the correlation id, generating one if none was sent.
    """
    request_id = request_id or uuid.uuid4().hex[:REQUEST_ID_LENGTH]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    return request_id


def bind_resource(resource_type: str, resource_id: str | None = None) -> None:
    """Stamp the resource being served on subsequent log events."""
    structlog.contextvars.bind_contextvars(resource_type=resource_type)
    if resource_id:
        structlog.contextvars.bind_contextvars(resource_id=resource_id)


def add_service_info(logger, method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("version", __version__)
    event_dict.setdefault("fhir_version", FHIR_VERSION)
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """
    Configure structlog and the root logger from settings.

    ``log_level`` sets the threshold; ``log_json`` picks JSON lines over the
    development console renderer.
    """
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_info,
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_json:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, usually for ``__name__``."""
    return structlog.get_logger(name)
