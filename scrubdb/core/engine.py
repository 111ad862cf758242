from __future__ import annotations
import hashlib
import io
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Pattern, TextIO

from faker import Faker

from ..config.models import Config, Rule, Strategy, compile_rules
from ..utils.io import chomp

logger = logging.getLogger(__name__)


# -----------------------------
# Detection
# -----------------------------
class Category(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    CREDIT_CARD = "credit_card"


PATTERNS: Dict[Category, Pattern] = {
    Category.EMAIL: re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b"),
    Category.PHONE: re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
    Category.CREDIT_CARD: re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
}

# Only these detections are rewritten, and only when the line's rule asks for
# the matching strategy.
SUBSTITUTED: Dict[Category, Strategy] = {
    Category.EMAIL: Strategy.FAKE_EMAIL,
    Category.PHONE: Strategy.FAKE_PHONE,
}


@dataclass
class Match:
    start: int
    end: int
    category: Category
    text: str


class Detector:
    """Regex detector for e-mails, phone numbers and card-like digit groups."""

    @staticmethod
    def scan(line: str, categories: Optional[Iterable[Category]] = None) -> Iterator[Match]:
        """Yield every detection in ``line``, one category after another.

        Categories are scanned independently, so the same characters may be
        reported under more than one category.
        """
        for category in categories if categories is not None else list(Category):
            for m in PATTERNS[category].finditer(line):
                yield Match(m.start(), m.end(), category, m.group(0))

    @staticmethod
    def contains(line: str, category: Category) -> bool:
        return PATTERNS[category].search(line) is not None


# -----------------------------
# Transformers (Strategies)
# -----------------------------
class FakeValueGenerator:
    """Source of synthetic values, backed by a per-instance ``Faker``.

    Pass ``seed`` to get a reproducible sequence of values.
    """

    def __init__(self, seed: Optional[int] = None, locale: str = "en_US"):
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)

    def email(self) -> str:
        return self.fake.safe_email()

    def name(self) -> str:
        return self.fake.name()

    def phone(self) -> str:
        return self.fake.phone_number()

    def address(self) -> str:
        return f"{self.fake.random_int(100, 9998)} Main St"


class RelationshipCache:
    """Maps an original value to the synthetic value first generated for it.

    The key is the original text only, so two strategies asking for the same
    original share one replacement. Entries are never evicted. An instance is
    not safe to share between threads without external locking.
    """

    def __init__(self):
        self._values: Dict[str, str] = {}

    def get_or_generate(self, original: str, generator: Callable[[], str]) -> str:
        try:
            return self._values[original]
        except KeyError:
            value = self._values[original] = generator()
            return value

    def __contains__(self, original: object) -> bool:
        return original in self._values

    def __len__(self) -> int:
        return len(self._values)


class Anonymizer:
    def __init__(self, cache: Optional[RelationshipCache] = None, generator: Optional[FakeValueGenerator] = None):
        self.cache = cache if cache is not None else RelationshipCache()
        self.generator = generator if generator is not None else FakeValueGenerator()
        self._synthetic: Dict[Strategy, Callable[[], str]] = {
            Strategy.FAKE_EMAIL: self.generator.email,
            Strategy.FAKE_NAME: self.generator.name,
            Strategy.FAKE_PHONE: self.generator.phone,
            Strategy.FAKE_ADDRESS: self.generator.address,
        }

    def anonymize(self, value: str, strategy: Strategy, preserve: bool) -> str:
        """Return the replacement for ``value`` under ``strategy``.

        Synthetic strategies go through the relationship cache when
        ``preserve`` is set; every other strategy ignores it.
        """
        if strategy in self._synthetic:
            generate = self._synthetic[strategy]
            if preserve:
                return self.cache.get_or_generate(value, generate)
            return generate()
        elif strategy == Strategy.MASK_CREDIT_CARD:
            return self._mask_credit_card(value)
        elif strategy == Strategy.MASK_SSN:
            return "***-**-****"
        elif strategy == Strategy.HASH:
            return self._hash(value)
        else:
            return value

    @staticmethod
    def _mask_credit_card(s: str) -> str:
        if len(s) > 4:
            return f"****-****-****-{s[-4:]}"
        return "****"

    @staticmethod
    def _hash(s: str) -> str:
        return hashlib.sha256(s.encode("utf-8")).hexdigest()


# -----------------------------
# Pipeline
# -----------------------------
def resolve_strategy(line: str, rules: Iterable[Rule]) -> Strategy:
    """Strategy of the first rule matching anywhere in ``line``, else ``SKIP``."""
    for rule in rules:
        if rule.matches(line):
            return rule.strategy
    return Strategy.SKIP


def process_line(line: str, rules: List[Rule], preserve: bool, anonymizer: Anonymizer) -> str:
    """Rewrite the e-mails and phone numbers of one line.

    The applicable strategy is resolved once for the whole line. Detections are
    only replaced when that strategy is the one for their category; each
    replacement substitutes every occurrence of the original text.
    """
    strategy = resolve_strategy(line, rules)
    out = line
    for category, wanted in SUBSTITUTED.items():
        if strategy != wanted:
            continue
        for match in Detector.scan(line, [category]):
            # plain substring replace: an original that is the tail of a longer
            # address on the same line rewrites that part of it too
            fake = anonymizer.anonymize(match.text, strategy, preserve)
            out = out.replace(match.text, fake)
    return out


@dataclass
class ScanReport:
    email_lines: int = 0
    phone_lines: int = 0
    creditcard_lines: int = 0
    total_lines: int = 0

    @property
    def has_findings(self) -> bool:
        return (self.email_lines + self.phone_lines + self.creditcard_lines) > 0

    def to_dict(self) -> Dict[str, int]:
        return dict(self.__dict__)


def tally(lines: Iterable[str]) -> ScanReport:
    """Count the lines containing each kind of detection."""
    report = ScanReport()
    for line in lines:
        report.total_lines += 1
        if Detector.contains(line, Category.EMAIL):
            report.email_lines += 1
        if Detector.contains(line, Category.PHONE):
            report.phone_lines += 1
        if Detector.contains(line, Category.CREDIT_CARD):
            report.creditcard_lines += 1
    return report


# -----------------------------
# Orchestrator
# -----------------------------
class ScrubEngine:
    """Facade providing the line-oriented scrub and scan operations.

    One engine owns one relationship cache, so replacements stay consistent
    for every line it processes. Do not drive one engine from several threads
    at once.
    """

    def __init__(self, cfg: Optional[Config] = None, anonymizer: Optional[Anonymizer] = None):
        """Create a new instance bound to ``cfg``."""

        self.cfg = cfg if cfg is not None else Config.default()
        self.anonymizer = anonymizer if anonymizer is not None else Anonymizer()
        self.rules = compile_rules(self.cfg.custom_rules)
        logger.info("Loaded %d anonymization rules", len(self.rules))

    @property
    def rule_count(self) -> int:
        return len(self.rules)

    @property
    def cache(self) -> RelationshipCache:
        return self.anonymizer.cache

    def process_line(self, line: str) -> str:
        return process_line(line, self.rules, self.cfg.preserve_relationships, self.anonymizer)

    def iter_process(self, lines: Iterable[str]) -> Iterator[str]:
        """Lazily scrub ``lines``, dropping their line terminators."""
        for line in lines:
            yield self.process_line(chomp(line))

    def process_stream(self, lines: Iterable[str], out: TextIO) -> int:
        """Scrub ``lines`` into ``out``, one newline-terminated line each.

        Returns the number of lines written. Read and write errors propagate.
        """
        count = 0
        for line in self.iter_process(lines):
            out.write(line + "\n")
            count += 1
        return count

    def process_text(self, text: str) -> str:
        """Scrub a whole document held in memory."""
        return "".join(line + "\n" for line in self.iter_process(io.StringIO(text)))

    def scan(self, lines: Iterable[str]) -> ScanReport:
        return tally(chomp(line) for line in lines)
