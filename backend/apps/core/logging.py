"""
Structured logging configuration using structlog.

Events are snake_case names with key-value context, rendered as JSON in
production and as coloured console lines locally.

Usage:
    from apps.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("organization_created", org_id=org.id, slug=org.slug)

The middleware binds the tenant and the authenticated member once per
request; those fields are merged into every event emitted while the request
is handled. Field names follow Datadog's standard attributes (usr.id,
usr.email) where one exists.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

SERVICE_NAME = "whatthepack"
REDACTED = "[redacted]"

# Keys that may carry Stytch session tokens or provider credentials
SENSITIVE_KEYS = frozenset({"session_jwt", "session_token", "authorization", "password", "api_key", "secret"})


def _add_service(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the service name."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _redact_secrets(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask values of sensitive keys so tokens never reach the log sink."""
    for key in event_dict.keys() & SENSITIVE_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(json_format: bool = True, log_level: str = "INFO") -> None:
    """
    Configure structlog on top of stdlib logging.

    Args:
        json_format: If True, output JSON (production). If False, pretty console output.
        log_level: Minimum log level to output.
    """
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_service,
        _redact_secrets,
    ]

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level_int)

    # Third-party HTTP clients are chatty at INFO
    for noisy in ("httpx", "httpcore", "openai"):
        logging.getLogger(noisy).setLevel(max(log_level_int, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, typically with ``__name__`` of the calling module."""
    return structlog.get_logger(name)


def bind_contextvars(**kwargs: Any) -> None:
    """
    Bind key-value pairs to the current request context.

    Dotted keys need dict unpacking: ``bind_contextvars(**{"usr.id": "42"})``.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def bind_tenant_context(tenant_slug: str | None) -> None:
    """Bind the subdomain tenant, if any, for the rest of the request."""
    if tenant_slug:
        bind_contextvars(tenant=tenant_slug)


def bind_member_context(email: str, user_id: int | None = None, role: str | None = None) -> None:
    """
    Bind the authenticated member.

    ``user_id`` and ``role`` are absent for identities that have not
    finished onboarding and so have no local user yet.
    """
    context: dict[str, Any] = {"usr.email": email}
    if user_id is not None:
        context["usr.id"] = str(user_id)
    if role:
        context["usr.role"] = role
    bind_contextvars(**context)


def clear_contextvars() -> None:
    """Clear all bound context variables at the end of a request."""
    structlog.contextvars.clear_contextvars()
