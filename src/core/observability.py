"""Observability helpers for the LP tracker.

Structured logging (structlog bridged over the stdlib ``logging`` module),
a ``traced`` decorator for adapter calls, and correlation-id helpers used
to tie together every log line of one reconciliation tick.
"""

import asyncio
import functools
import json
import logging
import re
import sys
import time
import uuid
from collections.abc import Callable
from typing import Any, TypeVar, cast

import structlog
from pydantic import BaseModel
from structlog.contextvars import bind_contextvars, unbind_contextvars

_SHARED_PROCESSORS: list[Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        *_SHARED_PROCESSORS,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    context_class=dict,
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])

_SENSITIVE_KEY_RE = re.compile(r"(token|key|secret|password|authorization)", re.IGNORECASE)

_NOISY_LOGGERS = ("discord", "discord.http", "discord.gateway", "aiohttp", "asyncpg")


def configure_logging(level: str = "INFO", file_target: str | None = None, debug: bool = False) -> None:
    """Route stdlib logging through structlog.

    JSON lines go to ``file_target`` (if given); stdout gets a console
    renderer when attached to a TTY, JSON otherwise.
    """
    console_renderer: Any = (
        structlog.dev.ConsoleRenderer()
        if sys.stdout.isatty()
        else structlog.processors.JSONRenderer()
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                console_renderer,
            ],
        )
    )
    root.addHandler(stream_handler)

    if file_target:
        file_handler = logging.FileHandler(file_target, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=_SHARED_PROCESSORS,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.dict_tracebacks,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        root.addHandler(file_handler)

    if not debug:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id to the current context and return it."""
    cid = correlation_id or uuid.uuid4().hex[:12]
    bind_contextvars(correlation_id=cid)
    return cid


def clear_correlation_id() -> None:
    unbind_contextvars("correlation_id")


def _mask_scalar(value: Any) -> Any:
    if value is None:
        return None
    s = str(value)
    if len(s) <= 8:
        return "***"
    return f"{s[:4]}…{s[-3:]}"


def _redact_obj(obj: Any) -> Any:
    if isinstance(obj, dict):
        return {
            k: (_mask_scalar(v) if _SENSITIVE_KEY_RE.search(str(k)) else _redact_obj(v))
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact_obj(i) for i in obj]
    return obj


def _serialize_value(value: Any, max_length: int = 500) -> Any:
    """Safely serialize a value for logging."""
    try:
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", exclude_unset=True)

        json_str = json.dumps(value, default=str)
        if len(json_str) > max_length:
            return json_str[:max_length] + "..."
        return json.loads(json_str)
    except (TypeError, ValueError):
        str_repr = str(value)
        if len(str_repr) > max_length:
            return str_repr[:max_length] + "..."
        return str_repr


def _serialize_kwargs(kwargs: dict[str, Any], max_length: int) -> dict[str, Any]:
    return _redact_obj({k: _serialize_value(v, max_length) for k, v in kwargs.items()})


def traced(
    *,
    capture_args: bool = True,
    capture_result: bool = False,
    max_arg_length: int = 500,
    log_level: str = "DEBUG",
    add_metadata: dict[str, Any] | None = None,
) -> Callable[[F], F]:
    """Decorator logging entry, exit, duration and failures of a call.

    Works for both sync and async callables. Exceptions are logged and
    re-raised. Positional ``self`` is skipped when serializing arguments.

    Example:
        >>> @traced(add_metadata={"layer": "db"})
        ... async def save(row: dict) -> bool:
        ...     return True
    """

    def decorator(func: F) -> F:
        name = f"{func.__module__}.{func.__qualname__}"
        level = log_level.lower()
        meta = add_metadata or {}

        def _describe(args: tuple[Any, ...], kwargs: dict[str, Any]) -> dict[str, Any]:
            if not capture_args:
                return {}
            positional = args[1:] if args and hasattr(args[0], func.__name__) else args
            return {
                "args": [_serialize_value(a, max_arg_length) for a in positional],
                "kwargs": _serialize_kwargs(kwargs, max_arg_length),
            }

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            execution_id = uuid.uuid4().hex[:12]
            bind_contextvars(execution_id=execution_id)
            start = time.perf_counter()
            logger.log(logging.getLevelName(level.upper()), "call_start", function=name, execution_id=execution_id, **meta, **_describe(args, kwargs))
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "call_failed",
                    function=name,
                    execution_id=execution_id,
                    duration_ms=(time.perf_counter() - start) * 1000,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    **meta,
                )
                raise
            finally:
                unbind_contextvars("execution_id")
            logger.log(
                logging.getLevelName(level.upper()),
                "call_done",
                function=name,
                execution_id=execution_id,
                duration_ms=(time.perf_counter() - start) * 1000,
                result=_redact_obj(_serialize_value(result, max_arg_length)) if capture_result else None,
                **meta,
            )
            return result

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            execution_id = uuid.uuid4().hex[:12]
            bind_contextvars(execution_id=execution_id)
            start = time.perf_counter()
            logger.log(logging.getLevelName(level.upper()), "call_start", function=name, execution_id=execution_id, **meta, **_describe(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(
                    "call_failed",
                    function=name,
                    execution_id=execution_id,
                    duration_ms=(time.perf_counter() - start) * 1000,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    **meta,
                )
                raise
            finally:
                unbind_contextvars("execution_id")
            logger.log(
                logging.getLevelName(level.upper()),
                "call_done",
                function=name,
                execution_id=execution_id,
                duration_ms=(time.perf_counter() - start) * 1000,
                result=_redact_obj(_serialize_value(result, max_arg_length)) if capture_result else None,
                **meta,
            )
            return result

        if asyncio.iscoroutinefunction(func):
            return cast(F, async_wrapper)
        return cast(F, sync_wrapper)

    return decorator
