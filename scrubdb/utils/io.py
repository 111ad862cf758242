"""Utility helpers for I/O operations."""
from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator

import yaml


def read_yaml(path: str) -> Dict[str, Any]:
    """Read a YAML file and return its content as a dictionary."""
    with open(path, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


def chomp(line: str) -> str:
    """Strip a single trailing ``\\n`` or ``\\r\\n`` from ``line``."""
    if line.endswith("\r\n"):
        return line[:-2]
    if line.endswith("\n"):
        return line[:-1]
    return line


def iter_lines(stream: Iterable[str]) -> Iterator[str]:
    """Yield the lines of ``stream`` without their line terminators."""
    for line in stream:
        yield chomp(line)


__all__ = ["read_yaml", "chomp", "iter_lines"]
