"""Configuration models for the dump anonymizer."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Pattern

logger = logging.getLogger(__name__)


class Strategy(str, Enum):
    """Anonymization method a rule applies to the values it selects."""

    FAKE_EMAIL = "fake_email"
    FAKE_NAME = "fake_name"
    FAKE_PHONE = "fake_phone"
    FAKE_ADDRESS = "fake_address"
    MASK_CREDIT_CARD = "mask_credit_card"
    MASK_SSN = "mask_ssn"
    HASH = "hash"
    SKIP = "skip"

    @classmethod
    def parse(cls, name: str) -> Optional["Strategy"]:
        """Return the strategy named by ``name`` or ``None`` if it is unknown.

        Matching is case-insensitive and accepts the short aliases used in
        config files (``email``, ``phone``, ``ssn`` ...).
        """
        return _ALIASES.get(name.lower())


_ALIASES: Dict[str, Strategy] = {
    "fake_email": Strategy.FAKE_EMAIL,
    "email": Strategy.FAKE_EMAIL,
    "fake_name": Strategy.FAKE_NAME,
    "name": Strategy.FAKE_NAME,
    "fake_phone": Strategy.FAKE_PHONE,
    "phone": Strategy.FAKE_PHONE,
    "fake_address": Strategy.FAKE_ADDRESS,
    "address": Strategy.FAKE_ADDRESS,
    "mask_credit_card": Strategy.MASK_CREDIT_CARD,
    "credit_card": Strategy.MASK_CREDIT_CARD,
    "mask_ssn": Strategy.MASK_SSN,
    "ssn": Strategy.MASK_SSN,
    "hash": Strategy.HASH,
    "skip": Strategy.SKIP,
}


@dataclass
class Rule:
    """Pattern selecting the lines a strategy applies to.

    ``pattern`` is matched anywhere in a line as a whole word; ``source`` keeps
    the text it was compiled from for reporting.
    """

    source: str
    pattern: Pattern
    strategy: Strategy

    def matches(self, line: str) -> bool:
        return self.pattern.search(line) is not None


@dataclass
class Config:
    """Runtime configuration for the scrub engine.

    ``auto_detect`` is accepted for config-file compatibility only; the engine
    never reads it.
    """

    custom_rules: Dict[str, str] = field(default_factory=dict)
    preserve_relationships: bool = True
    auto_detect: bool = False

    @classmethod
    def default(cls) -> "Config":
        """Configuration used when no config file is available."""
        return cls()

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load configuration from *path*."""
        from .loader import load_config

        return load_config(path)


def compile_rules(custom_rules: Mapping[str, str]) -> List[Rule]:
    """Compile ``pattern -> strategy`` pairs into :class:`Rule` objects.

    Declaration order is kept. Entries with an unknown strategy name or a
    pattern that fails to compile are dropped.
    """
    compiled: List[Rule] = []
    for source, method in custom_rules.items():
        strategy = Strategy.parse(method)
        if strategy is None:
            logger.debug("Dropping rule %r: unknown strategy %r", source, method)
            continue
        try:
            pattern = re.compile(rf"\b{re.escape(source)}\b")
        except re.error as exc:
            logger.debug("Dropping rule %r: %s", source, exc)
            continue
        compiled.append(Rule(source=source, pattern=pattern, strategy=strategy))
    return compiled


__all__ = ["Strategy", "Rule", "Config", "compile_rules"]
