"""Opponent targeting."""

from .targeting import HuntTargetAI, TargetingMemory, TargetingMode, directional_candidates

__all__ = ["HuntTargetAI", "TargetingMemory", "TargetingMode", "directional_candidates"]
