"""Rule-driven anonymization of textual database dumps."""

from .config.models import Config, Strategy
from .core.engine import ScrubEngine

__all__ = ["Config", "Strategy", "ScrubEngine"]
