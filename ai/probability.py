"""
概率分析

基于记牌器估算胜率、出牌风险、队友接牌概率，并判断是否该用炸弹。
所有概率都限制在 [0, 1]。
"""
from enum import Enum
from dataclasses import dataclass
from typing import Dict, Optional

from core.cards import Rank, PLAYER_COUNT
from core.actions import Play, PlayType, SEQUENCE_TYPES, TRIPLE_FAMILY
from core.rules import RuleEngine
from core.state import GameState, teammate_index, opponent_indices

from .card_tracker import CardTracker, PlayerPattern
from .hand_evaluator import HandEvaluator
from .hand_structure import HandStructureAnalyzer


# 各牌型被压的基础概率
BEATEN_BASE: Dict[PlayType, float] = {
    PlayType.FOUR_KINGS: 0.05,
    PlayType.STRAIGHT_FLUSH: 0.15,
    PlayType.PLATE: 0.25,
    PlayType.TRIPLE_PAIR: 0.3,
    PlayType.STRAIGHT: 0.35,
    PlayType.TRIPLE_WITH_PAIR: 0.35,
    PlayType.TRIPLE: 0.4,
    PlayType.PAIR: 0.45,
    PlayType.SINGLE: 0.55,
}

# 炸弹按张数
BOMB_BEATEN_BASE = {4: 0.25, 5: 0.18, 6: 0.12}
BOMB_BEATEN_LARGE = 0.08

# 队友接牌的牌型难度加成
TEAMMATE_TYPE_EASE: Dict[PlayType, float] = {
    PlayType.SINGLE: 0.1,
    PlayType.PAIR: 0.05,
    PlayType.TRIPLE: 0.0,
    PlayType.TRIPLE_WITH_PAIR: 0.0,
    PlayType.TRIPLE_PAIR: -0.1,
    PlayType.PLATE: -0.1,
    PlayType.STRAIGHT: -0.1,
    PlayType.STRAIGHT_FLUSH: -0.15,
    PlayType.BOMB: -0.2,
    PlayType.FOUR_KINGS: -0.45,
}


class RiskLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class RiskAssessment:
    """
    出牌风险评估

    Attributes:
        risk_level: 风险等级
        beaten_probability: 被对手压的平均概率
        teammate_can_help: 队友能接牌的概率
        should_play: 是否建议出
        reason: 说明
    """
    risk_level: RiskLevel
    beaten_probability: float
    teammate_can_help: float
    should_play: bool
    reason: str = ""


@dataclass(frozen=True)
class ResponsePrediction:
    """对手反应预测"""
    will_beat: bool
    confidence: float
    likely_play_type: Optional[PlayType] = None


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class ProbabilityAnalyzer:
    """
    概率分析器

    依赖同一座位的记牌器，读取状态快照，不修改任何东西
    """

    def __init__(self, tracker: CardTracker):
        self.tracker = tracker

    def _count(self, state: GameState, seat: int) -> int:
        return len(state.hand(seat))

    def seat_bomb_mass(self, seat: int) -> float:
        """
        某个座位的炸弹期望

        全局炸弹估计按该座位在未知牌中所占比例分摊
        """
        count = self.tracker.get_player_card_count(seat)
        if count <= 0:
            return 0.0
        unseen = sum(
            self.tracker.get_player_card_count(s)
            for s in range(PLAYER_COUNT) if s != self.tracker.seat_index
        )
        if unseen <= 0:
            return 0.0
        return self.tracker.estimate_bomb_count(seat) * count / unseen

    def _estimated_turns(self, seat: int) -> float:
        """对手出完手牌大约需要的轮数"""
        count = self.tracker.get_player_card_count(seat)
        if count <= 0:
            return 0.0
        inferred = self.tracker.infer_hand_structure(seat)
        saved = (inferred.estimated_pairs + 2 * inferred.estimated_triples
                 + 4 * inferred.estimated_straights + 3 * inferred.estimated_bombs)
        return max(1.0, count - saved)

    def win_probability(self, state: GameState, player_index: int) -> float:
        """
        估算当前局面己方胜率

        Args:
            state: 状态快照
            player_index: 座位

        Returns:
            0-1 的胜率
        """
        teammate = teammate_index(player_index)
        opponents = opponent_indices(player_index)
        own = self._count(state, player_index)
        mate = self._count(state, teammate)
        opp_counts = [self._count(state, o) for o in opponents]

        probability = 0.5

        # 1. 两队剩余张数差
        own_team = own + mate
        opp_team = sum(opp_counts)
        probability += clamp(0.25 * (opp_team - own_team) / max(own_team, opp_team, 1), -0.25, 0.25)

        # 2. 自己与对手平均张数比较
        avg_opp = opp_team / len(opponents)
        if own < avg_opp:
            probability += 0.1 * (avg_opp - own) / avg_opp
        elif own > 0:
            probability -= 0.1 * (own - avg_opp) / own

        # 3. 炸弹数差
        own_bombs = HandEvaluator.evaluate(state.hand(player_index), state.trump).bomb_count
        team_bombs = own_bombs + self.seat_bomb_mass(teammate)
        opp_bombs = sum(self.seat_bomb_mass(o) for o in opponents)
        probability += 0.12 * (team_bombs - opp_bombs)

        # 4. 牌权
        if state.last_play_player_index in (player_index, teammate):
            probability += 0.08
        elif state.last_play_player_index in opponents:
            probability -= 0.05

        # 5. 快出完
        if own <= 3:
            probability += 0.15
        elif own <= 5:
            probability += 0.08
        if 0 < mate <= 3:
            probability += 0.1
        if any(0 < c <= 3 for c in opp_counts):
            probability -= 0.12

        # 6. 手牌结构
        own_turns = HandStructureAnalyzer(state.trump).analyze(state.hand(player_index)).hand_count
        opp_turns = sum(self._estimated_turns(o) for o in opponents) / len(opponents)
        if own_turns or opp_turns:
            probability += 0.05 * (opp_turns - own_turns) / max(own_turns, opp_turns)

        # 7. 连续拿到牌权
        streak = 0
        for winner in reversed(state.trick_winners):
            if winner not in (player_index, teammate):
                break
            streak += 1
        probability += 0.03 * streak

        return clamp(probability)

    def evaluate_risk(self, play: Play, state: GameState, player_index: int) -> RiskAssessment:
        """
        评估出牌风险

        Args:
            play: 候选出牌
            state: 状态快照
            player_index: 座位

        Returns:
            RiskAssessment
        """
        opponents = opponent_indices(player_index)
        beaten = sum(
            self.estimate_beaten_probability(play, o, state) for o in opponents
        ) / len(opponents)
        assist = self.estimate_teammate_can_help(play, teammate_index(player_index), state)

        should_play = True
        if beaten < 0.3:
            level = RiskLevel.LOW
            reason = '出牌较安全，对手难以压制'
        elif beaten < 0.7:
            level = RiskLevel.MEDIUM
            reason = '出牌有一定风险'
            if assist > 0.6:
                level = RiskLevel.LOW
                reason = '队友可能接牌，风险可控'
        else:
            level = RiskLevel.HIGH
            reason = '出牌风险较高，很可能被压'
            if assist < 0.4:
                should_play = False
                reason = '风险过高且队友难以帮助'

        return RiskAssessment(
            risk_level=level,
            beaten_probability=beaten,
            teammate_can_help=assist,
            should_play=should_play,
            reason=reason,
        )

    @staticmethod
    def _extremity(play: Play) -> float:
        """主牌越大越难被压"""
        tier, rank = RuleEngine.get_main_power(play)
        if tier >= 2 or rank >= Rank.KING:
            return -0.1
        if tier == 0 and rank <= Rank.SIX:
            return 0.1
        return 0.0

    def estimate_beaten_probability(self, play: Play, opponent: int, state: GameState) -> float:
        """
        估算某个对手能压过这手牌的概率

        Args:
            play: 出牌
            opponent: 对手座位
            state: 状态快照

        Returns:
            0-1 的概率
        """
        count = self.tracker.get_player_card_count(opponent)
        if count <= 0:
            return 0.0

        # 1. 牌型
        if play.play_type == PlayType.BOMB:
            probability = BOMB_BEATEN_BASE.get(len(play), BOMB_BEATEN_LARGE)
        else:
            probability = BEATEN_BASE.get(play.play_type, 0.35)

        # 2. 对手张数
        if count > 20:
            probability += 0.25
        elif count > 15:
            probability += 0.15
        elif count > 10:
            probability += 0.05
        elif count <= 3:
            probability -= 0.15
        elif count <= 6:
            probability -= 0.1

        # 3. 对手炸弹
        mass = self.seat_bomb_mass(opponent)
        if play.is_bomb:
            probability += 0.05 * mass
        else:
            probability += min(0.2, 0.1 * mass)

        # 4. 对手风格
        pattern = self.tracker.get_player_pattern(opponent)
        if pattern == PlayerPattern.AGGRESSIVE:
            probability += 0.1
        elif pattern == PlayerPattern.CONSERVATIVE:
            probability -= 0.1

        # 5. 主牌大小
        probability += self._extremity(play)

        # 6. 推断的手牌结构
        inferred = self.tracker.infer_hand_structure(opponent)
        bonus = 0.0
        if play.play_type == PlayType.SINGLE and inferred.has_control:
            bonus = 0.05
        elif play.play_type in (PlayType.PAIR, PlayType.TRIPLE_PAIR) and inferred.estimated_pairs >= 2:
            bonus = 0.05
        elif play.play_type in TRIPLE_FAMILY and inferred.estimated_triples >= 1:
            bonus = 0.05
        elif play.play_type in SEQUENCE_TYPES and inferred.estimated_straights >= 1:
            bonus = 0.05
        probability += bonus * inferred.confidence

        return clamp(probability)

    def estimate_teammate_can_help(self, play: Play, teammate: int, state: GameState) -> float:
        """
        估算队友能接过这手牌的概率

        Args:
            play: 出牌
            teammate: 队友座位
            state: 状态快照

        Returns:
            0-1 的概率
        """
        count = self.tracker.get_player_card_count(teammate)
        if count <= 0:
            return 0.0

        probability = 0.45
        if count > 15:
            probability += 0.15
        elif count > 10:
            probability += 0.05
        elif count <= 5:
            probability -= 0.15

        probability += min(0.25, 0.25 * self.seat_bomb_mass(teammate))
        probability += TEAMMATE_TYPE_EASE.get(play.play_type, 0.0)

        # 队友快出完时更想接牌
        if count <= 3:
            probability += 0.1

        return clamp(probability)

    def _likely_outclassed(self, opponent: int) -> bool:
        inferred = self.tracker.infer_hand_structure(opponent)
        return inferred.estimated_bombs >= 1.0 and inferred.confidence >= 0.5

    def should_use_bomb(self, state: GameState, player_index: int, bomb_play: Play) -> bool:
        """
        判断是否应该用炸弹

        Args:
            state: 状态快照
            player_index: 座位
            bomb_play: 准备打出的炸弹

        Returns:
            是否使用
        """
        own = self._count(state, player_index)
        teammate = teammate_index(player_index)
        opponents = opponent_indices(player_index)
        opp_counts = [self.tracker.get_player_card_count(o) for o in opponents]

        # 1. 对手快出完，必须拦
        if any(0 < c <= 2 for c in opp_counts):
            return True

        # 2. 打完就赢，或者和队友都快出完
        if len(bomb_play) == own:
            return True
        if own <= 5 and self._count(state, teammate) <= 5:
            return True

        win_prob = self.win_probability(state, player_index)

        # 3. 劣势搏一把
        if win_prob < 0.25:
            return True

        # 4. 四王只用来拦截或收尾
        if bomb_play.play_type == PlayType.FOUR_KINGS:
            return own <= 5 or any(0 < c <= 3 for c in opp_counts)

        # 5. 优势时保留大炸弹
        if len(bomb_play) >= 6 and win_prob > 0.6 and own > 10:
            return False
        if win_prob > 0.75 and own > 8:
            return False

        # 6. 对手炸弹多，尽早用掉
        if max(self.seat_bomb_mass(o) for o in opponents) > 1.5:
            return True
        if len(bomb_play) < 6 and any(self._likely_outclassed(o) for o in opponents):
            return True

        # 7. 对手出了大牌，队友难以接住
        last = state.last_play
        if last is not None and state.last_play_player_index in opponents:
            strong = last.is_bomb or self._extremity(last) < 0
            assist = self.estimate_teammate_can_help(last, teammate, state)
            if strong and assist < 0.4 and win_prob < 0.6:
                return True

        return False

    def predict_opponent_response(self, play: Play, opponent: int, state: GameState) -> ResponsePrediction:
        """预测对手是否会压这手牌"""
        if self.tracker.get_player_card_count(opponent) <= 0:
            return ResponsePrediction(will_beat=False, confidence=1.0)

        beaten = self.estimate_beaten_probability(play, opponent, state)
        return ResponsePrediction(
            will_beat=beaten > 0.5,
            confidence=abs(beaten - 0.5) * 2,
            likely_play_type=play.play_type,
        )
