"""Configuration loader for the dump anonymizer."""
from __future__ import annotations

import logging
import os
import warnings
from typing import Any, Dict, Optional

from .models import Config, compile_rules
from ..utils.io import read_yaml
from ..core.engine import Anonymizer, FakeValueGenerator, ScrubEngine

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SCRUB_DB_CONFIG"
CONFIG_CANDIDATES = ("scrub-db.yaml", ".scrub-db.yaml", "scrub-db.yml", ".scrub-db.yml")


def _require_bool(raw: Dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be a boolean, got {value!r}")
    return value


def load_config(path: str) -> Config:
    """Load configuration from a YAML file.

    Parameters
    ----------
    path: str
        Path to the YAML configuration file.

    Missing ``preserve_relationships`` and ``auto_detect`` keys default to
    ``True``. Raises ``ValueError`` when the document does not have the
    expected shape.
    """
    logger.debug("Loading config from %s", path)
    raw = read_yaml(path)
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")

    rules = raw.get("custom_rules") or {}
    if not isinstance(rules, dict):
        raise ValueError("'custom_rules' must map patterns to strategy names")
    custom_rules: Dict[str, str] = {}
    for pattern, method in rules.items():
        if not isinstance(pattern, str) or not isinstance(method, str):
            raise ValueError(
                f"'custom_rules' entries must be strings, got {pattern!r}: {method!r}"
            )
        custom_rules[pattern] = method

    if not custom_rules:
        warnings.warn(
            f"Config file {path} declares no custom_rules; data will pass through unchanged.",
            UserWarning,
        )

    return Config(
        custom_rules=custom_rules,
        preserve_relationships=_require_bool(raw, "preserve_relationships", True),
        auto_detect=_require_bool(raw, "auto_detect", True),
    )


def find_config(directory: str = ".") -> Optional[str]:
    """Return the first well-known config file present in ``directory``."""
    for name in CONFIG_CANDIDATES:
        candidate = os.path.join(directory, name)
        if os.path.isfile(candidate):
            return candidate
    return None


def resolve_config_path(path: Optional[str] = None, directory: str = ".") -> Optional[str]:
    """Pick the config file to use.

    An explicit ``path`` wins, then the ``SCRUB_DB_CONFIG`` environment
    variable, then the first file found by :func:`find_config`.
    """
    return path or os.getenv(CONFIG_ENV_VAR) or find_config(directory)


__all__ = [
    "CONFIG_CANDIDATES",
    "CONFIG_ENV_VAR",
    "compile_rules",
    "find_config",
    "load_config",
    "resolve_config_path",
]


def create_engine(config_path: Optional[str] = None, seed: Optional[int] = None) -> ScrubEngine:
    """Application factory creating a configured :class:`ScrubEngine`.

    Falls back to :meth:`Config.default` when no config file can be found.
    """
    path = resolve_config_path(config_path)
    cfg = load_config(path) if path else Config.default()
    return ScrubEngine(cfg, Anonymizer(generator=FakeValueGenerator(seed=seed)))


__all__.append("create_engine")
