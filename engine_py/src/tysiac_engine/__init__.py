"""Tysiąc card game engine."""

from .engine import TysiacEngine
from .errors import GameError
from .rules import RuleConfig, create_rules, default_rules

__all__ = ["TysiacEngine", "GameError", "RuleConfig", "create_rules", "default_rules"]
