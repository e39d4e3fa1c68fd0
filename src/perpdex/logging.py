"""structlog setup for the risk engine.

Every module logs through `get_logger(__name__)` with snake_case event names
(`oracle_fetch_failed`, `positions_listed`). Output goes through the stdlib
root handler so uvicorn and solana-py records share one format.
"""

import logging

import structlog

# Third-party loggers that emit one record per RPC or HTTP round-trip
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Route structlog and stdlib logging through a single renderer.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
        log_format: "json" for machine-readable lines, anything else for
            the colored development console.

    Fields bound with structlog.contextvars (the owner being listed, for
    instance) are merged into every record emitted inside that task,
    including the concurrent oracle fetches it spawns.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
