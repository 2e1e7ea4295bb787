"""
AI 性格

四种预设性格，每种由五个 0-1 之间的系数组成，
在概率分析和策略打分中作为乘数使用。
"""
from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional
import random


class PersonalityType(Enum):
    """性格类型"""
    AGGRESSIVE = "aggressive"      # 激进型：喜欢压牌、早用炸弹
    CONSERVATIVE = "conservative"  # 保守型：谨慎出牌、保留大牌
    COOPERATIVE = "cooperative"    # 优先配合队友
    BALANCED = "balanced"          # 根据局面灵活调整


@dataclass(frozen=True)
class AIPersonality:
    """
    性格参数

    Attributes:
        type: 性格类型
        name: 显示名称
        risk_tolerance: 风险容忍度，越高越激进
        bomb_threshold: 炸弹使用门槛，越低越容易用炸弹
        teamwork_priority: 配合优先级
        thinking_time_multiplier: 思考时间倍数
        aggressiveness: 进攻性
        description: 描述
    """
    type: PersonalityType
    name: str
    risk_tolerance: float
    bomb_threshold: float
    teamwork_priority: float
    thinking_time_multiplier: float
    aggressiveness: float
    description: str = ""


PERSONALITIES: Dict[PersonalityType, AIPersonality] = {
    PersonalityType.AGGRESSIVE: AIPersonality(
        type=PersonalityType.AGGRESSIVE,
        name='激进型',
        risk_tolerance=0.8,
        bomb_threshold=0.3,
        teamwork_priority=0.3,
        thinking_time_multiplier=0.7,
        aggressiveness=0.9,
        description='快速果断，喜欢压牌，早用炸弹',
    ),
    PersonalityType.CONSERVATIVE: AIPersonality(
        type=PersonalityType.CONSERVATIVE,
        name='保守型',
        risk_tolerance=0.3,
        bomb_threshold=0.8,
        teamwork_priority=0.5,
        thinking_time_multiplier=1.5,
        aggressiveness=0.2,
        description='谨慎稳重，保留大牌',
    ),
    PersonalityType.COOPERATIVE: AIPersonality(
        type=PersonalityType.COOPERATIVE,
        name='配合型',
        risk_tolerance=0.5,
        bomb_threshold=0.5,
        teamwork_priority=0.9,
        thinking_time_multiplier=1.0,
        aggressiveness=0.4,
        description='团队至上，优先配合队友',
    ),
    PersonalityType.BALANCED: AIPersonality(
        type=PersonalityType.BALANCED,
        name='均衡型',
        risk_tolerance=0.5,
        bomb_threshold=0.5,
        teamwork_priority=0.6,
        thinking_time_multiplier=1.0,
        aggressiveness=0.5,
        description='灵活应变，根据局面调整策略',
    ),
}

BALANCED = PERSONALITIES[PersonalityType.BALANCED]


def get_personality(personality_type) -> AIPersonality:
    """
    获取性格配置

    Args:
        personality_type: PersonalityType 或其字符串值

    Raises:
        ValueError: 未知的性格名称
    """
    if not isinstance(personality_type, PersonalityType):
        personality_type = PersonalityType(personality_type)
    return PERSONALITIES[personality_type]


def get_random_personality(rng: Optional[random.Random] = None) -> AIPersonality:
    """随机选择一种性格"""
    rng = rng or random.Random()
    return PERSONALITIES[rng.choice(list(PersonalityType))]


def adjust_decision_by_personality(base_value: float, personality: AIPersonality, factor: str) -> float:
    """
    根据性格调整决策参数

    Args:
        base_value: 基础值
        personality: 性格
        factor: 'risk' / 'bomb' / 'teamwork' / 'aggression'

    Returns:
        调整后的值
    """
    if factor == 'risk':
        multiplier = personality.risk_tolerance
    elif factor == 'bomb':
        # 门槛越低，越容易用
        multiplier = 1 - personality.bomb_threshold
    elif factor == 'teamwork':
        multiplier = personality.teamwork_priority
    elif factor == 'aggression':
        multiplier = personality.aggressiveness
    else:
        raise ValueError(f"Unknown personality factor: {factor}")
    return base_value * multiplier


def calculate_thinking_time(personality: AIPersonality, complexity: float, base_time: float = 1.0) -> float:
    """
    计算思考时间 (秒)

    Args:
        personality: 性格
        complexity: 决策复杂度 0-1
        base_time: 基础时间

    Returns:
        限制在 [0.3, 3.0] 秒内的思考时间
    """
    complexity_factor = 0.5 + min(max(complexity, 0.0), 1.0) * 0.5
    thinking_time = base_time * personality.thinking_time_multiplier * complexity_factor
    return max(0.3, min(3.0, thinking_time))
