"""
决策解释

为出牌或不要生成可读的原因说明
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional

from core.actions import Play, PlayType
from core.rules import RuleEngine
from core.state import GameState, Player, teammate_index, opponent_indices

from .probability import ProbabilityAnalyzer, RiskLevel


class DecisionType(Enum):
    ATTACK = "attack"
    DEFENSE = "defense"
    COOPERATE = "cooperate"
    CONSERVE = "conserve"
    FINISH = "finish"


@dataclass(frozen=True)
class DecisionReason:
    """
    决策原因

    Attributes:
        type: 决策类型
        reason: 原因
        confidence: 信心值 0-1
        factors: 影响因素
    """
    type: DecisionType
    reason: str
    confidence: float
    factors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DecisionFactor:
    name: str
    value: float
    weight: float


class DecisionExplainer:
    """决策解释器"""

    def __init__(self, analyzer: Optional[ProbabilityAnalyzer] = None):
        self.analyzer = analyzer

    def explain(self, play: Optional[Play], player: Player, state: GameState) -> DecisionReason:
        """
        解释一次决策

        Args:
            play: 出的牌，None 表示不要
            player: 玩家
            state: 决策时的状态

        Returns:
            DecisionReason
        """
        if play is None:
            return self.explain_pass(player, state)
        return self.explain_play(play, player, state)

    def explain_play(self, play: Play, player: Player, state: GameState) -> DecisionReason:
        index = player.id
        hand_size = len(player.hand)
        opponents_near_win = any(0 < len(state.hand(i)) <= 3 for i in opponent_indices(index))
        leading = state.last_play is None
        factors: List[str] = []

        if hand_size <= 5:
            decision_type = DecisionType.FINISH
            reason = '手牌不多，积极出牌争取走完'
            factors.append(f'剩余{hand_size}张牌')
            confidence = 0.9
        elif play.is_bomb:
            if opponents_near_win:
                decision_type = DecisionType.DEFENSE
                reason = '对手即将走完，使用炸弹压制'
                factors.append('对手剩余牌少')
                confidence = 0.95
            else:
                decision_type = DecisionType.ATTACK
                reason = '时机成熟，使用炸弹建立优势'
                factors.append('炸弹价值最大化')
                confidence = 0.8
        elif not leading and state.last_play_player_index == teammate_index(index):
            decision_type = DecisionType.COOPERATE
            reason = '配合队友，接过牌权'
            factors.append('队友需要支持')
            confidence = 0.75
        elif not leading and opponents_near_win:
            decision_type = DecisionType.DEFENSE
            reason = '对手威胁较大，必须压制'
            factors.append('对手牌少')
            confidence = 0.85
        elif leading:
            decision_type = DecisionType.ATTACK
            if play.play_type in (PlayType.SINGLE, PlayType.PAIR):
                reason = '出小牌试探，保留大牌后用'
                factors.append('优先出小牌')
            elif play.play_type in (PlayType.STRAIGHT, PlayType.STRAIGHT_FLUSH):
                reason = '出顺子减少手牌'
                factors.append('顺子可减少多张牌')
            else:
                reason = '主动出牌建立优势'
                factors.append('掌握主动权')
            confidence = 0.7
        else:
            decision_type = DecisionType.ATTACK
            risk_level = None
            if self.analyzer is not None:
                risk_level = self.analyzer.evaluate_risk(play, state, index).risk_level
            if risk_level == RiskLevel.LOW:
                reason = '安全出牌，对手难以压制'
                factors.append('风险较低')
                confidence = 0.8
            elif risk_level == RiskLevel.HIGH:
                reason = '冒险出牌，争取主动权'
                factors.append('风险较高')
                confidence = 0.5
            else:
                reason = '正常出牌，保持节奏'
                factors.append('稳定策略')
                confidence = 0.7

        factors.append(f'牌型：{play.name}')

        if self.analyzer is not None:
            win_prob = self.analyzer.win_probability(state, index)
            factors.append(f'预计胜率：{round(win_prob * 100)}%')
            if win_prob > 0.7:
                confidence = min(0.95, confidence + 0.1)
            elif win_prob < 0.3:
                confidence = max(0.3, confidence - 0.1)

        return DecisionReason(decision_type, reason, confidence, factors)

    def explain_pass(self, player: Player, state: GameState) -> DecisionReason:
        index = player.id
        if state.last_play is not None and state.last_play_player_index == teammate_index(index):
            return DecisionReason(DecisionType.COOPERATE, '队友出牌较好，不需要压', 0.85, ['配合队友'])

        if state.last_play is not None and not RuleEngine.has_response(player.hand, state.last_play, state.trump):
            return DecisionReason(DecisionType.DEFENSE, '没有能压过的牌，只能不要', 1.0, ['无法压制'])

        hand_size = len(player.hand)
        if hand_size > 15:
            return DecisionReason(DecisionType.CONSERVE, '手牌较多，暂时观望保留实力', 0.6, [f'手牌{hand_size}张'])
        return DecisionReason(DecisionType.CONSERVE, '当前局面不适合出牌，保守策略', 0.6, ['谨慎行事'])

    @staticmethod
    def generate_explanation(factors: List[DecisionFactor]) -> str:
        """取权重最高的两个因素组成简短说明"""
        if not factors:
            return '基于当前局面做出决策'
        top = sorted(factors, key=lambda f: f.value * f.weight, reverse=True)[:2]
        return '，'.join(f.name for f in top)
