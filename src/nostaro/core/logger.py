"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module so every diagnostic line is an
event name followed by structured fields. Two renderings are available:
human-readable ``key=value`` pairs (default) and one JSON object per line
(``--log-json``), which is easier to feed into log shippers when ``watch``
runs as a long-lived daemon.

``StructuredFormatter`` is a stdlib ``logging.Formatter`` that reads the
``structured_kv`` extra attached by [Logger][nostaro.core.logger.Logger].
Installed on the root handler, it also formats plain ``logging.getLogger()``
calls from libraries (aiohttp, the protocol SDK) with the same prefix.

Examples:
    ```python
    from nostaro.core.logger import Logger

    logger = Logger("watch")
    logger.info("webhook_delivered", event_id="ab12", status=204)
    # Output: info watch webhook_delivered event_id=ab12 status=204
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


def _truncate(value: Any, max_value_length: int | None) -> str:
    s = str(value)
    if max_value_length and len(s) > max_value_length:
        return s[:max_value_length] + f"...<truncated {len(s) - max_value_length} chars>"
    return s


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values longer than ``max_value_length`` are truncated. Values that are
    empty or contain whitespace, ``=`` or quotes are escaped and wrapped in
    double quotes so the line stays machine-splittable.

    Returns:
        The formatted pairs with ``prefix`` prepended, or an empty string
        when ``kwargs`` is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for k, v in kwargs.items():
        s = _truncate(v, max_value_length)
        if not s or any(c in s for c in " \t\n=\"'"):
            escaped = s.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
            parts.append(f'{k}="{escaped}"')
        else:
            parts.append(f"{k}={s}")

    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Render log records as ``level name message key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger that turns keyword arguments into log fields.

    Mirrors the standard logging API (``debug`` .. ``critical``,
    ``exception``) with an extra ``**kwargs`` parameter.

    Args:
        name: Name passed to ``logging.getLogger``.
        json_output: Emit one JSON object per record instead of key=value pairs.
        max_value_length: Per-value truncation limit (default 1000).
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    # Process-wide switch flipped by ``--log-json``; per-instance flag wins.
    json_default: ClassVar[bool] = False

    def __init__(
        self,
        name: str,
        *,
        json_output: bool | None = None,
        max_value_length: int | None = None,
    ) -> None:
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            self._DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def json_output(self) -> bool:
        return self.json_default if self._json_output is None else self._json_output

    def _format_json(self, msg: str, level: str, kwargs: dict[str, Any]) -> str:
        record = {
            "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            "level": level,
            "logger": self._logger.name,
            "message": msg,
            **{k: _truncate(v, self._max_value_length) for k, v in kwargs.items()},
        }
        return json.dumps(record, default=str, ensure_ascii=False)

    def _log(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self.json_output:
            name = logging.getLevelName(level).lower()
            self._logger.log(level, self._format_json(msg, name, kwargs), exc_info=exc_info)
            return
        extra = {}
        if kwargs:
            extra["structured_kv"] = {
                k: _truncate(v, self._max_value_length) for k, v in kwargs.items()
            }
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log(logging.ERROR, msg, kwargs, exc_info=True)


def setup_logging(level: str = "WARNING", *, json_output: bool = False) -> None:
    """Install a ``StructuredFormatter`` handler on the root logger.

    Replaces any handler a previous call installed so repeated invocations
    (tests, embedding) do not duplicate output.
    """
    Logger.json_default = json_output
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    for existing in list(logging.root.handlers):
        if isinstance(existing.formatter, StructuredFormatter):
            logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper()))
