"""
AI 配置

定义 MCTS、策略引擎和 AI 玩家的参数
"""
from dataclasses import dataclass, field
from typing import Tuple


@dataclass
class MCTSConfig:
    """
    MCTS 配置

    Attributes:
        time_limit_ms: 固定搜索时间 (毫秒)，不按手牌数调整时使用
        scale_by_hand: 是否按手牌数在 min_time_ms 与 max_time_ms 之间调整
        min_time_ms: 手牌最少时的搜索时间
        max_time_ms: 手牌最多时的搜索时间
        max_iterations: 最大迭代次数
        max_depth: 选择阶段的最大深度
        rollout_depth: 模拟阶段的最大步数
        exploration: UCB1 探索常数
    """
    time_limit_ms: float = 1500.0
    scale_by_hand: bool = True
    min_time_ms: float = 1000.0
    max_time_ms: float = 2000.0
    max_iterations: int = 800
    max_depth: int = 20
    rollout_depth: int = 30
    exploration: float = 1.4142135623730951

    @classmethod
    def from_dict(cls, d: dict) -> 'MCTSConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


@dataclass
class StrategyConfig:
    """
    策略引擎配置

    Attributes:
        use_mcts: 是否启用 MCTS
        mcts_own_hand: 自己手牌不超过该值时启用 MCTS
        mcts_any_hand: 任一玩家手牌不超过该值时启用 MCTS
        mcts_max_options: 可选出牌不超过该值时启用 MCTS
        mcts_played_cards: 已出牌数超过该值时启用 MCTS
        early_phase: 前期阈值 (已出牌比例)
        late_phase: 后期阈值 (已出牌比例)
    """
    use_mcts: bool = True
    mcts_own_hand: int = 8
    mcts_any_hand: int = 5
    mcts_max_options: int = 3
    mcts_played_cards: int = 60
    early_phase: float = 0.3
    late_phase: float = 0.7

    @classmethod
    def from_dict(cls, d: dict) -> 'StrategyConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


@dataclass
class AIConfig:
    """
    AI 玩家配置

    Attributes:
        personality: 性格名称
        thinking_delay: 出牌前的思考延迟范围 (秒)
        mcts: MCTS 配置
        strategy: 策略配置
    """
    personality: str = "balanced"
    thinking_delay: Tuple[float, float] = (0.5, 1.5)
    mcts: MCTSConfig = field(default_factory=MCTSConfig)
    strategy: StrategyConfig = field(default_factory=StrategyConfig)

    @classmethod
    def from_dict(cls, d: dict) -> 'AIConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        if isinstance(filtered.get('mcts'), dict):
            filtered['mcts'] = MCTSConfig.from_dict(filtered['mcts'])
        if isinstance(filtered.get('strategy'), dict):
            filtered['strategy'] = StrategyConfig.from_dict(filtered['strategy'])
        if 'thinking_delay' in filtered:
            filtered['thinking_delay'] = tuple(filtered['thinking_delay'])
        return cls(**filtered)
