"""Configuration helpers for the dump anonymizer."""

from .models import Config, Rule, Strategy, compile_rules
from .loader import load_config, create_engine, find_config

__all__ = ["Config", "Rule", "Strategy", "compile_rules", "load_config", "create_engine", "find_config"]
