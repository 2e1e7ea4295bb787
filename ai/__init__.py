"""
AI Layer - 手牌评估、记牌、概率分析、搜索与策略

Modules:
    config: AI 配置
    personality: AI 性格
    hand_evaluator: 手牌静态评估
    hand_structure: 手牌结构拆分
    card_tracker: 记牌器
    probability: 概率分析
    mcts: 蒙特卡洛树搜索
    strategy: 策略引擎
    explainer: 决策解释
    player: AI 玩家
"""
from .config import AIConfig, MCTSConfig, StrategyConfig
from .personality import (
    PersonalityType,
    AIPersonality,
    PERSONALITIES,
    get_personality,
    get_random_personality,
    adjust_decision_by_personality,
    calculate_thinking_time,
)
from .hand_evaluator import HandEvaluator, HandScore
from .hand_structure import HandStructureAnalyzer, HandStructure
from .card_tracker import CardTracker, PlayerPattern, InferredStructure
from .probability import ProbabilityAnalyzer, RiskAssessment, RiskLevel, ResponsePrediction
from .mcts import MCTSEngine, SimState
from .strategy import StrategyEngine, GamePhase
from .explainer import DecisionExplainer, DecisionReason, DecisionType
from .player import AIPlayer, Hint

__all__ = [
    # config
    "AIConfig",
    "MCTSConfig",
    "StrategyConfig",
    # personality
    "PersonalityType",
    "AIPersonality",
    "PERSONALITIES",
    "get_personality",
    "get_random_personality",
    "adjust_decision_by_personality",
    "calculate_thinking_time",
    # evaluation
    "HandEvaluator",
    "HandScore",
    "HandStructureAnalyzer",
    "HandStructure",
    # tracking
    "CardTracker",
    "PlayerPattern",
    "InferredStructure",
    "ProbabilityAnalyzer",
    "RiskAssessment",
    "RiskLevel",
    "ResponsePrediction",
    # search & policy
    "MCTSEngine",
    "SimState",
    "StrategyEngine",
    "GamePhase",
    "DecisionExplainer",
    "DecisionReason",
    "DecisionType",
    "AIPlayer",
    "Hint",
]
