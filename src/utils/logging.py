"""Structured logging configuration for genius-chat.

Uses structlog with two correlation ids:

- ``conversation_id`` is bound when a persona is selected. Video job tasks
  are created from the asking task, so they inherit it.
- ``job_id`` is bound by a JobTracker inside its own task.

Records from stdlib loggers pass through the same processors, so every
``logging.getLogger(__name__)`` line in the services carries both ids.
"""

import logging
import sys
from contextvars import ContextVar

import structlog

current_conversation_id: ContextVar[str | None] = ContextVar(
    "current_conversation_id", default=None
)
current_job_id: ContextVar[str | None] = ContextVar("current_job_id", default=None)

# Event dict key -> context variable
_CORRELATION_IDS = {
    "conversation_id": current_conversation_id,
    "job_id": current_job_id,
}

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "google_genai.models")


def add_correlation_ids(_logger, _method_name, event_dict):
    """Structlog processor adding the bound conversation and job ids."""
    for key, var in _CORRELATION_IDS.items():
        value = var.get()
        if value and key not in event_dict:
            event_dict[key] = value
    return event_dict


def setup_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog and route stdlib records through it.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON lines if True, colored console output otherwise
    """
    pre_chain = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_ids,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def set_conversation_context(conversation_id: str) -> None:
    """Bind the conversation id for the current task and tasks it creates."""
    current_conversation_id.set(conversation_id)


def clear_conversation_context() -> None:
    current_conversation_id.set(None)


def set_job_context(job_id: str) -> None:
    """Bind the video job id; inside a job task this stays local to it."""
    current_job_id.set(job_id)


def clear_job_context() -> None:
    current_job_id.set(None)
