import pytest

from scrubdb.core.engine import Anonymizer, RelationshipCache


class StubGenerator:
    """Deterministic stand-in for FakeValueGenerator that counts its calls."""

    def __init__(self):
        self.calls = 0

    def _next(self, template: str) -> str:
        self.calls += 1
        return template.format(n=self.calls)

    def email(self) -> str:
        return self._next("fake{n}@example.org")

    def name(self) -> str:
        return self._next("Name {n}")

    def phone(self) -> str:
        return self._next("000-000-000{n}")

    def address(self) -> str:
        return self._next("{n}00 Main St")


@pytest.fixture
def stub_generator():
    return StubGenerator()


@pytest.fixture
def anonymizer(stub_generator):
    return Anonymizer(cache=RelationshipCache(), generator=stub_generator)
