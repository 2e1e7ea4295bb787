"""
策略引擎

综合手牌评估、记牌器、概率分析和 MCTS，为一个座位选出一手牌或不要。
决策是同步的，只读取传入的状态快照。
"""
from enum import Enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import random

from core.cards import Card, TOTAL_CARDS
from core.actions import Play, PlayType, PlayGenerator
from core.rules import RuleEngine
from core.state import GameState, Player, teammate_index, opponent_indices

from .config import StrategyConfig, MCTSConfig
from .personality import AIPersonality, BALANCED, adjust_decision_by_personality
from .hand_evaluator import HandEvaluator, HandScore
from .card_tracker import CardTracker
from .probability import ProbabilityAnalyzer, RiskAssessment, RiskLevel
from .mcts import MCTSEngine

logger = logging.getLogger(__name__)


class GamePhase(Enum):
    EARLY = "early"
    MID = "mid"
    LATE = "late"


PHASE_MULTIPLIER: Dict[GamePhase, float] = {
    GamePhase.EARLY: 0.9,
    GamePhase.MID: 1.0,
    GamePhase.LATE: 1.2,
}

# 主动出牌时的风险加成
LEAD_RISK_BONUS: Dict[RiskLevel, float] = {
    RiskLevel.LOW: 20.0,
    RiskLevel.MEDIUM: 5.0,
    RiskLevel.HIGH: -15.0,
}

# 主动出牌时的牌型加成 (能一次走多张的牌型优先)
LEAD_TYPE_BONUS: Dict[PlayType, float] = {
    PlayType.STRAIGHT: 25.0,
    PlayType.TRIPLE_PAIR: 22.0,
    PlayType.PLATE: 22.0,
    PlayType.TRIPLE_WITH_PAIR: 20.0,
    PlayType.STRAIGHT_FLUSH: 10.0,
    PlayType.TRIPLE: 12.0,
    PlayType.PAIR: 10.0,
    PlayType.SINGLE: 5.0,
    PlayType.BOMB: -30.0,
    PlayType.FOUR_KINGS: -30.0,
}

# 没有概率分析时的主动出牌顺序
LEAD_LADDER: Tuple[Tuple[PlayType, ...], ...] = (
    (PlayType.STRAIGHT,),
    (PlayType.TRIPLE_WITH_PAIR, PlayType.PLATE, PlayType.TRIPLE_PAIR, PlayType.TRIPLE),
    (PlayType.PAIR,),
    (PlayType.SINGLE,),
    (PlayType.STRAIGHT_FLUSH,),
)


@dataclass(frozen=True)
class ScoredPlay:
    play: Play
    score: float
    risk: RiskAssessment


class StrategyEngine:
    """
    策略引擎

    主动出牌、接队友的牌、压对手的牌分别处理。MCTS 失败时
    记录日志并退回启发式策略。
    """

    def __init__(
        self,
        config: Optional[StrategyConfig] = None,
        mcts: Optional[MCTSEngine] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or StrategyConfig()
        self.rng = rng or random.Random()
        self.mcts = mcts or MCTSEngine(MCTSConfig(), self.rng)

    def game_phase(self, state: GameState) -> GamePhase:
        """按已出牌比例划分前期、中期、后期"""
        fraction = state.cards_played / TOTAL_CARDS
        if fraction < self.config.early_phase:
            return GamePhase.EARLY
        if fraction < self.config.late_phase:
            return GamePhase.MID
        return GamePhase.LATE

    def decide_move(
        self,
        player: Player,
        state: GameState,
        analyzer: Optional[ProbabilityAnalyzer] = None,
        tracker: Optional[CardTracker] = None,
        personality: Optional[AIPersonality] = None,
    ) -> Optional[Tuple[Card, ...]]:
        """
        决定出牌

        Args:
            player: 行动的玩家
            state: 状态快照
            analyzer: 概率分析器
            tracker: 记牌器
            personality: 性格

        Returns:
            要出的牌，None 表示不要
        """
        play = self.decide_play(player, state, analyzer, tracker, personality)
        return play.cards if play is not None else None

    def decide_play(
        self,
        player: Player,
        state: GameState,
        analyzer: Optional[ProbabilityAnalyzer] = None,
        tracker: Optional[CardTracker] = None,
        personality: Optional[AIPersonality] = None,
    ) -> Optional[Play]:
        """与 decide_move 相同，但返回 Play"""
        hand = player.hand
        if not hand:
            return None

        personality = personality or BALANCED
        index = player.id
        hand_score = HandEvaluator.evaluate(hand, state.trump)
        phase = self.game_phase(state)
        generator = PlayGenerator(hand, state.trump)

        if state.last_play is None or state.last_play_player_index == index:
            return self._choose_lead(generator.generate_all(), player, state, analyzer, hand_score)

        responses = generator.generate_responses(state.last_play)

        if state.last_play_player_index == teammate_index(index):
            return self._follow_teammate(responses, player, state, tracker)

        if not responses:
            return None

        mcts_play = self._consult_mcts(player, state, responses)

        if analyzer is not None and tracker is not None:
            return self._score_responses(
                responses, mcts_play, player, state, analyzer, personality, phase,
            )
        return self._simple_response(responses, mcts_play, hand, hand_score)

    def _choose_lead(
        self,
        plays: List[Play],
        player: Player,
        state: GameState,
        analyzer: Optional[ProbabilityAnalyzer],
        hand_score: HandScore,
    ) -> Play:
        """主动出牌"""
        hand_size = len(player.hand)
        for play in plays:
            if len(play) == hand_size:
                return play

        non_bombs = [p for p in plays if not p.is_bomb]
        candidates = non_bombs or plays

        if analyzer is None:
            for types in LEAD_LADDER:
                matched = [p for p in candidates if p.play_type in types]
                if matched:
                    return RuleEngine.sort_plays(matched)[0]
            return RuleEngine.sort_plays(candidates)[0]

        best: Optional[Play] = None
        best_score = float('-inf')
        for play in candidates:
            risk = analyzer.evaluate_risk(play, state, player.id)
            tier, rank = RuleEngine.get_main_power(play)
            score = LEAD_RISK_BONUS[risk.risk_level] + LEAD_TYPE_BONUS[play.play_type]
            score += len(play)
            # 同等情况下先出小牌
            score -= 0.5 * (tier * 15 + rank - 2)
            if score > best_score:
                best, best_score = play, score
        logger.debug("Lead %s scored %.1f", best.name, best_score)
        return best

    def _follow_teammate(
        self,
        responses: List[Play],
        player: Player,
        state: GameState,
        tracker: Optional[CardTracker],
    ) -> Optional[Play]:
        """
        队友出的牌一般不压，除非自己能走完或两人都快走完
        """
        if not responses:
            return None

        hand_size = len(player.hand)
        mate = teammate_index(player.id)
        mate_count = tracker.get_player_card_count(mate) if tracker is not None else len(state.hand(mate))
        non_bombs = [p for p in responses if not p.is_bomb]

        if hand_size <= 3:
            for play in responses:
                if len(play) == hand_size:
                    return play
            return non_bombs[0] if non_bombs else None

        if mate_count <= 3 and hand_size <= 5:
            return non_bombs[0] if non_bombs else None

        return None

    def should_use_mcts(self, player: Player, state: GameState, responses: Sequence[Play]) -> bool:
        """残局、可选项很少或已出牌较多时启用 MCTS"""
        config = self.config
        if not config.use_mcts:
            return False
        return (
            len(player.hand) <= config.mcts_own_hand
            or any(size <= config.mcts_any_hand for size in state.hand_sizes)
            or len(responses) <= config.mcts_max_options
            or state.cards_played > config.mcts_played_cards
        )

    def _consult_mcts(self, player: Player, state: GameState, responses: List[Play]) -> Optional[Play]:
        if not self.should_use_mcts(player, state, responses):
            return None
        try:
            play = self.mcts.search(state)
        except Exception:
            logger.debug("MCTS search failed, falling back to heuristics", exc_info=True)
            return None
        if play is None:
            return None
        legal_ids = {p.card_ids for p in responses}
        if play.card_ids not in legal_ids and not RuleEngine.validate(
            player.hand, play.cards, state.last_play, state.trump
        ).ok:
            return None
        return play

    def _score_responses(
        self,
        responses: List[Play],
        mcts_play: Optional[Play],
        player: Player,
        state: GameState,
        analyzer: ProbabilityAnalyzer,
        personality: AIPersonality,
        phase: GamePhase,
    ) -> Optional[Play]:
        """给每个能压的候选打分"""
        index = player.id
        hand_size = len(player.hand)
        win_prob = analyzer.win_probability(state, index)
        aggression = adjust_decision_by_personality(0.4, personality, 'aggression')
        multiplier = PHASE_MULTIPLIER[phase] * (0.8 + aggression)

        candidates = list(responses)
        if mcts_play is not None and mcts_play.card_ids not in {p.card_ids for p in candidates}:
            candidates.append(mcts_play)

        scored: List[ScoredPlay] = []
        for order, play in enumerate(candidates):
            risk = analyzer.evaluate_risk(play, state, index)
            if risk.risk_level == RiskLevel.LOW:
                score = 30.0
            elif risk.risk_level == RiskLevel.MEDIUM:
                score = 0.0
            else:
                score = -30.0 * (1.2 - personality.risk_tolerance)

            score += win_prob * 20

            if hand_size <= 3:
                score += 25
            elif hand_size <= 5:
                score += 15

            if play.is_bomb:
                if analyzer.should_use_bomb(state, index, play):
                    score += 20 + adjust_decision_by_personality(40, personality, 'bomb')
                else:
                    score -= 40 * (0.5 + personality.bomb_threshold)

            if risk.teammate_can_help > 0.6:
                score += 7.5 + adjust_decision_by_personality(15, personality, 'teamwork')

            if mcts_play is not None and play.card_ids == mcts_play.card_ids:
                score += 10

            score *= multiplier
            # 分数相同时出小牌
            score -= 0.01 * order
            scored.append(ScoredPlay(play, score, risk))

        scored.sort(key=lambda s: s.score, reverse=True)
        top = scored[0]
        logger.debug("Seat %d top candidate %s score %.1f", index, top.play.name, top.score)

        if top.risk.should_play:
            return top.play

        safest = min(scored, key=lambda s: s.risk.beaten_probability)
        if safest.risk.should_play:
            return safest.play

        if hand_size <= 5:
            return top.play
        return None

    @staticmethod
    def _simple_response(
        responses: List[Play],
        mcts_play: Optional[Play],
        hand: Sequence[Card],
        hand_score: HandScore,
    ) -> Optional[Play]:
        """
        没有概率分析时: 手牌强、少或控制牌多就出最大的，否则出最小的

        有非炸弹可出时只在非炸弹中挑选，只有炸弹能压时用最小的炸弹
        """
        if mcts_play is not None and not mcts_play.is_bomb:
            return mcts_play

        hand_size = len(hand)
        strong = hand_score.total_score >= 4.0 * hand_size or hand_score.bomb_count >= 2
        short = hand_size <= 5
        control_rich = hand_score.control_count >= 4

        non_bombs = [p for p in responses if not p.is_bomb]
        if not non_bombs:
            return responses[0]
        if strong or short or control_rich:
            return non_bombs[-1]
        return non_bombs[0]
