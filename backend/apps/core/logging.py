"""
Structured logging for the scheduling backend, built on structlog.

Production output is one JSON object per line using Datadog standard
attributes. Context arrives from three places:

    - RequestContextMiddleware binds trace_id, http.method, http.url_details.path
    - ApiKeyAuth binds the caller as usr.id and organization.id
    - Service calls pass scheduling entities as keyword arguments

Entity ids passed as ``<entity>_id`` are lifted into dotted facets, so

    logger.info("booking_created", booking_id=12, event_id=34)

is searchable as ``@booking.id:12 @event.id:34`` next to the bound context.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

# Keyword argument -> facet emitted in the log line
ENTITY_FACETS = {
    "organization_id": "organization.id",
    "department_id": "department.id",
    "provider_id": "provider.id",
    "event_id": "event.id",
    "booking_id": "booking.id",
    "subscription_id": "subscription.id",
}


def _lift_entity_ids(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    for key, facet in ENTITY_FACETS.items():
        if key not in event_dict:
            continue
        value = event_dict.pop(key)
        if value is not None:
            event_dict[facet] = str(value)
    return event_dict


def _service_tagger(service: str) -> Processor:
    def tag(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return tag


def configure_logging(
    json_format: bool = True,
    log_level: str = "INFO",
    service: str = "medisched-api",
) -> None:
    """
    Route structlog and stdlib logging (Django included) through one renderer.

    Args:
        json_format: JSON lines when True, colored console output otherwise.
        log_level: Minimum level for the root logger.
        service: Value of the ``service`` attribute on every line.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _lift_entity_ids,
        _service_tagger(service),
    ]

    if json_format:
        shared.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # The email SDK's HTTP client logs every request at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_contextvars(**kwargs: Any) -> None:
    """
    Attach fields to every log line for the rest of the request.

    Dotted keys need dict unpacking:
        bind_contextvars(**{"usr.id": str(user.id)})
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_contextvars() -> None:
    structlog.contextvars.clear_contextvars()
