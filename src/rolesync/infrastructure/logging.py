"""Structlog configuration for role sync processes.

Colored console output for development, JSON for production. Every event
carries the application name and, once known, the reaction backend, so
probe output from the migrations, the drift script and an embedding
application can be told apart.
"""

import logging
import os
import sys

import structlog


def service_context(
    app_name: str, reaction_backend: str | None = None
) -> structlog.types.Processor:
    """Processor adding the static process context to every event.

    Keys already present on the event win.
    """
    context = {"app": app_name}
    if reaction_backend is not None:
        context["reaction_backend"] = reaction_backend

    def add_service_context(logger, method_name, event_dict):
        for key, value in context.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_context


def configure_logging(
    level: str = "info",
    app_name: str = "rolesync",
    reaction_backend: str | None = None,
) -> None:
    """Configure structlog with appropriate processors.

    Args:
        level: Minimum log level name (e.g. "debug", "info")
        app_name: Value of the "app" key on every event
        reaction_backend: Value of the "reaction_backend" key, if set
    """
    # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    use_colors = force_color or sys.stdout.isatty()

    min_level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        service_context(app_name, reaction_backend),
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if use_colors:
        renderers: list[structlog.types.Processor] = [
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=[*shared_processors, *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
