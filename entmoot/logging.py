"""Logging helpers for entmoot.

Wraps a standard ``logging.Logger`` so that pydantic models (mention records,
diffs, notifications) can be handed straight to the log call and come out
readable.
"""

import logging
from pprint import pformat
from typing import Any

from pydantic import BaseModel

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(pathname)s:%(lineno)d - %(levelname)s - %(message)s"


class PprintLogger:
    """A logger wrapper that pretty-prints structured log messages."""

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def _format_message(self, msg: Any, pprint: bool = True) -> str:
        """Render ``msg`` as text.

        Pydantic models are dumped with ``model_dump_json``; strings pass
        through unchanged; anything else goes through ``pformat``.
        """
        if not pprint or isinstance(msg, str):
            return str(msg)
        if isinstance(msg, BaseModel):
            return msg.model_dump_json(indent=2)
        return pformat(msg, width=120, depth=None)

    def debug(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def info(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        if self._logger.isEnabledFor(logging.INFO):
            self._logger.info(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def warning(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.warning(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def error(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.error(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def exception(self, msg: Any, *args, pprint: bool = True, **kwargs) -> None:
        self._logger.exception(self._format_message(msg, pprint=pprint), *args, stacklevel=2, **kwargs)

    def __getattr__(self, name: str) -> Any:
        """Delegate any other attributes to the underlying logger."""
        return getattr(self._logger, name)


def setup_logging(name: str = "entmoot", level: int | None = None) -> PprintLogger:
    """Return a ``PprintLogger`` for ``name``.

    A stream handler is attached only to the top-level ``entmoot`` logger and
    only once; child loggers (``entmoot.sync`` etc.) propagate to it. When
    ``level`` is omitted the logger keeps whatever level it already has.
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    root = logging.getLogger("entmoot")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root.addHandler(handler)
        if root.level == logging.NOTSET:
            root.setLevel(logging.WARNING)
    return PprintLogger(logger)
