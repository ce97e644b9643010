"""Timestamped, tag-normalized console logging."""

from __future__ import annotations

import builtins
import sys
import time
from typing import Any


_LEVELS = {"DEEP", "DEBUG", "INFO", "WARN", "ERROR"}
_ERROR_LEVELS = {"WARN", "ERROR"}


def _split_tags(message: str) -> tuple[list[str], str]:
    tags: list[str] = []
    remaining = message.lstrip()
    while remaining.startswith("["):
        end = remaining.find("]")
        if end == -1:
            break
        tag = remaining[1:end].strip()
        if not tag:
            break
        tags.append(tag)
        remaining = remaining[end + 1 :].lstrip()
    return tags, remaining


def _format_message(message: str) -> tuple[str, str | None]:
    """Return the message with tags reordered as [SYSTEM][LEVEL], plus the level."""
    tags, remaining = _split_tags(message)
    system = "RESOLVER"
    level: str | None = None
    extra_tags: list[str] = []
    if tags:
        first = tags[0].upper()
        if first in _LEVELS:
            level = first
            system = tags[1] if len(tags) > 1 else system
            extra_tags = tags[2:]
        else:
            system = tags[0]
            if len(tags) > 1 and tags[1].upper() in _LEVELS:
                level = tags[1].upper()
                extra_tags = tags[2:]
            else:
                extra_tags = tags[1:]
    head = f"[{system}][{level}]" if level else f"[{system}]"
    extra = f" [{' '.join(extra_tags)}]" if extra_tags else ""
    suffix = f" {remaining}" if remaining else ""
    return f"{head}{extra}{suffix}", level


def tprint(*args: Any, **kwargs: Any) -> None:
    """Print with a timestamp prefix; WARN/ERROR lines go to stderr."""
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    formatted, level = _format_message(" ".join(str(arg) for arg in args))
    if "file" not in kwargs and level in _ERROR_LEVELS:
        kwargs["file"] = sys.stderr
    builtins.print(f"[{timestamp}]{formatted}", **kwargs)

