"""
Evaluation Layer - AI 对战评估

Modules:
    arena: 对战竞技场
"""
from .arena import (
    MatchResult,
    TournamentResult,
    Arena,
    compare_personalities,
)

__all__ = [
    "MatchResult",
    "TournamentResult",
    "Arena",
    "compare_personalities",
]
