"""
Core Layer - 纯游戏逻辑

Modules:
    cards: 牌定义与编码
    actions: 牌型与出牌生成
    rules: 规则引擎
    state: 游戏状态与状态管理器
"""
from .cards import (
    Card,
    Suit,
    Rank,
    TrumpContext,
    NO_TRUMP,
    Deck,
    FULL_DECK,
    TOTAL_CARDS,
    CARDS_PER_PLAYER,
    PLAYER_COUNT,
    create_deck,
    card_power,
    compare_cards,
    sort_cards,
    cards_to_array,
    array_to_cards,
    card_to_str,
    cards_to_str,
    str_to_cards,
)

from .actions import (
    PlayType,
    Play,
    PlayGenerator,
    MIN_STRAIGHT_LEN,
)

from .rules import RuleEngine, PlayError, ValidationResult

from .state import (
    Phase,
    EventType,
    Player,
    PlayRecord,
    GameState,
    GameEvent,
    ActionResult,
    GameStateManager,
    teammate_index,
    opponent_indices,
    next_level,
    default_players,
)

__all__ = [
    # cards
    "Card",
    "Suit",
    "Rank",
    "TrumpContext",
    "NO_TRUMP",
    "Deck",
    "FULL_DECK",
    "TOTAL_CARDS",
    "CARDS_PER_PLAYER",
    "PLAYER_COUNT",
    "create_deck",
    "card_power",
    "compare_cards",
    "sort_cards",
    "cards_to_array",
    "array_to_cards",
    "card_to_str",
    "cards_to_str",
    "str_to_cards",
    # actions
    "PlayType",
    "Play",
    "PlayGenerator",
    "MIN_STRAIGHT_LEN",
    # rules
    "RuleEngine",
    "PlayError",
    "ValidationResult",
    # state
    "Phase",
    "EventType",
    "Player",
    "PlayRecord",
    "GameState",
    "GameEvent",
    "ActionResult",
    "GameStateManager",
    "teammate_index",
    "opponent_indices",
    "next_level",
    "default_players",
]
