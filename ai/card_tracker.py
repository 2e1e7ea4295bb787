"""
记牌器

从一个座位的视角跟踪本局已出的牌、各家剩余张数和行为，
并为每个其他座位维护一个 108 维的持牌概率向量。
"""
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
from collections import Counter
import logging

import numpy as np

from core.cards import (
    Card,
    Rank,
    TrumpContext,
    NO_TRUMP,
    FULL_DECK,
    CARD_INDEX,
    TOTAL_CARDS,
    CARDS_PER_PLAYER,
    PLAYER_COUNT,
    JOKER_RANKS,
    PLAIN_RANKS,
    card_power,
    is_run_rank,
)
from core.actions import Play, PlayType, MIN_STRAIGHT_LEN
from core.rules import RuleEngine
from core.state import GameState

logger = logging.getLogger(__name__)

# 不要之后，能压过的牌的概率缩放范围
MIN_PASS_FACTOR = 0.7
MAX_PASS_FACTOR = 0.9

# 每个点数在 108 张牌中的下标
RANK_INDICES: Dict[Rank, np.ndarray] = {
    rank: np.array([i for i, c in enumerate(FULL_DECK) if c.rank == rank])
    for rank in list(PLAIN_RANKS) + list(JOKER_RANKS)
}


class PlayerPattern(Enum):
    """出牌风格"""
    AGGRESSIVE = "aggressive"
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"


@dataclass
class PlayerStats:
    """
    单个座位的行为统计

    Attributes:
        plays: 出牌次数
        passes: 不要次数
        play_types: 各牌型出牌次数
        pass_on_types: 面对各牌型时不要的次数
        bombs: 使用炸弹次数
    """
    plays: int = 0
    passes: int = 0
    play_types: Counter = field(default_factory=Counter)
    pass_on_types: Counter = field(default_factory=Counter)
    bombs: int = 0

    @property
    def actions(self) -> int:
        return self.plays + self.passes

    @property
    def pass_rate(self) -> float:
        return self.passes / self.actions if self.actions else 0.0

    @property
    def bomb_rate(self) -> float:
        return self.bombs / self.plays if self.plays else 0.0


@dataclass(frozen=True)
class InferredStructure:
    """
    对某个座位手牌结构的推断

    Attributes:
        estimated_bombs: 估计炸弹数
        estimated_straights: 估计顺子数
        estimated_triples: 估计三张数
        estimated_pairs: 估计对子数
        has_control: 是否可能持有王或级牌
        confidence: 推断可信度 0-1
    """
    estimated_bombs: float = 0.0
    estimated_straights: int = 0
    estimated_triples: int = 0
    estimated_pairs: int = 0
    has_control: bool = False
    confidence: float = 0.0


class CardTracker:
    """
    记牌器

    每局开始时调用 reset，之后对每次出牌/不要调用 observe_*。
    概率向量只覆盖没打出、也不在自己手里的牌，并且归一化到
    该座位的剩余张数 (每张牌不超过 1)。
    """

    def __init__(self, seat_index: int):
        """
        Args:
            seat_index: 记牌器所属的座位
        """
        self.seat_index = seat_index
        self.trump: TrumpContext = NO_TRUMP
        self.played = np.zeros(TOTAL_CARDS, dtype=bool)
        self.own_hand = np.zeros(TOTAL_CARDS, dtype=bool)
        self.played_cards: List[Card] = []
        self.card_counts: List[int] = [CARDS_PER_PLAYER] * PLAYER_COUNT
        self.stats: List[PlayerStats] = [PlayerStats() for _ in range(PLAYER_COUNT)]
        self.probabilities = np.zeros((PLAYER_COUNT, TOTAL_CARDS), dtype=np.float64)
        # 每次观察后递增，用于缓存结构推断
        self.version = 0
        self._structure_cache: Dict[int, Tuple[int, InferredStructure]] = {}

    def reset(self, state: GameState) -> None:
        """
        新一局重置

        已经发生的出牌记录会被补记到统计中

        Args:
            state: 当前状态
        """
        self.trump = state.trump
        self.played[:] = False
        self.own_hand[:] = False
        for card in state.hand(self.seat_index):
            self.own_hand[CARD_INDEX[card.id]] = True
        self.played_cards = []
        self.card_counts = list(state.hand_sizes)
        self.stats = [PlayerStats() for _ in range(PLAYER_COUNT)]
        self.version += 1

        lead: Optional[Play] = None
        for record in state.play_history:
            if record.play is None:
                self._record_pass(record.player_index, lead)
            else:
                self._mark_played(record.play.cards)
                self._record_play(record.player_index, record.play.play_type)
                lead = record.play

        self.probabilities[:] = 0.0
        self.probabilities[self.seat_index] = self.own_hand.astype(np.float64)
        for seat in range(PLAYER_COUNT):
            if seat != self.seat_index:
                self.probabilities[seat] = self._candidate_mask(seat).astype(np.float64)
                self._normalize(seat)

    def _candidate_mask(self, seat: int) -> np.ndarray:
        """该座位可能持有的牌"""
        if seat == self.seat_index:
            return self.own_hand.copy()
        return ~self.played & ~self.own_hand

    def _mark_played(self, cards: Sequence[Card]) -> None:
        for card in cards:
            index = CARD_INDEX[card.id]
            self.played[index] = True
            self.own_hand[index] = False
        self.played_cards.extend(cards)

    def _record_play(self, seat: int, play_type: Optional[PlayType]) -> None:
        stats = self.stats[seat]
        stats.plays += 1
        if play_type is not None:
            stats.play_types[play_type] += 1
            if play_type in (PlayType.BOMB, PlayType.FOUR_KINGS):
                stats.bombs += 1

    def _record_pass(self, seat: int, lead: Optional[Play]) -> None:
        stats = self.stats[seat]
        stats.passes += 1
        if lead is not None:
            stats.pass_on_types[lead.play_type] += 1

    def _normalize(self, seat: int) -> None:
        """把概率向量缩放到该座位剩余张数，超过 1 的部分分给其他牌"""
        row = self.probabilities[seat]
        mask = self._candidate_mask(seat)
        row[~mask] = 0.0
        target = self.card_counts[seat]
        available = int(mask.sum())

        if target <= 0 or available == 0:
            row[:] = 0.0
            return
        if target >= available:
            row[mask] = 1.0
            return
        if row.sum() <= 0:
            row[mask] = 1.0

        capped = np.zeros(TOTAL_CARDS, dtype=bool)
        for _ in range(TOTAL_CARDS):
            free = mask & ~capped
            remaining = target - int(capped.sum())
            free_sum = row[free].sum()
            if free_sum <= 0:
                row[free] = remaining / max(int(free.sum()), 1)
                break
            row[free] *= remaining / free_sum
            over = free & (row > 1.0)
            if not over.any():
                break
            row[over] = 1.0
            capped |= over

    def observe_play(self, seat: int, cards: Sequence[Card]) -> None:
        """
        记录一次出牌

        Args:
            seat: 出牌座位
            cards: 打出的牌
        """
        self._mark_played(cards)
        self.version += 1
        self.card_counts[seat] = max(0, self.card_counts[seat] - len(cards))
        self._record_play(seat, RuleEngine.detect_play_type(cards, self.trump))

        self.probabilities[:, self.played] = 0.0
        self.probabilities[self.seat_index] = self.own_hand.astype(np.float64)
        for other in range(PLAYER_COUNT):
            if other != self.seat_index:
                self._normalize(other)

    def observe_pass(self, seat: int, lead_play: Optional[Play]) -> None:
        """
        记录一次不要

        不要说明该座位大概率没有能压过的牌，按其不要的频率
        降低大于首攻主牌的单牌概率

        Args:
            seat: 不要的座位
            lead_play: 需要压过的牌
        """
        self._record_pass(seat, lead_play)
        self.version += 1
        if lead_play is None or seat == self.seat_index:
            return

        # 经常不要的玩家，不要提供的信息更少
        factor = MIN_PASS_FACTOR + (MAX_PASS_FACTOR - MIN_PASS_FACTOR) * self.stats[seat].pass_rate
        lead_power = RuleEngine.get_main_power(lead_play)
        row = self.probabilities[seat]
        for index in np.flatnonzero(row > 0):
            if card_power(FULL_DECK[index], self.trump) > lead_power:
                row[index] *= factor
        self._normalize(seat)
        logger.debug("Seat %d passed on %s, scaled beating cards by %.2f", seat, lead_play.name, factor)

    def get_probability_map(self, seat: int) -> np.ndarray:
        return self.probabilities[seat].copy()

    def get_player_card_count(self, seat: int) -> int:
        return self.card_counts[seat]

    def get_player_stats(self, seat: int) -> PlayerStats:
        return self.stats[seat]

    def get_remaining_cards(self) -> List[Card]:
        """还没打出的牌 (含自己手牌)"""
        return [FULL_DECK[i] for i in np.flatnonzero(~self.played)]

    def get_unseen_cards(self) -> List[Card]:
        """别人手里的牌"""
        return [FULL_DECK[i] for i in np.flatnonzero(~self.played & ~self.own_hand)]

    @property
    def played_fraction(self) -> float:
        return float(self.played.sum()) / TOTAL_CARDS

    def rank_mass(self, seat: int) -> Dict[Rank, float]:
        """该座位各点数的期望张数"""
        row = self.probabilities[seat]
        return {rank: float(row[indices].sum()) for rank, indices in RANK_INDICES.items()}

    def estimate_bomb_count(self, seat: int) -> float:
        """
        估计炸弹数

        未出现的同点数牌有 4 张及以上记 0.3 个，四个王都未出现再加 0.5
        """
        if self.card_counts[seat] <= 0:
            return 0.0
        unseen = ~self.played & ~self.own_hand
        estimate = 0.0
        for rank in PLAIN_RANKS:
            if int(unseen[RANK_INDICES[rank]].sum()) >= 4:
                estimate += 0.3
        jokers = sum(int(unseen[RANK_INDICES[r]].sum()) for r in JOKER_RANKS)
        if jokers == 4:
            estimate += 0.5
        return estimate

    def get_player_pattern(self, seat: int) -> PlayerPattern:
        """
        根据不要的频率和炸弹使用率判断出牌风格

        行动少于 3 次时视为均衡
        """
        stats = self.stats[seat]
        if stats.actions < 3:
            return PlayerPattern.BALANCED
        if stats.pass_rate < 0.3 or stats.bomb_rate > 0.2:
            return PlayerPattern.AGGRESSIVE
        if stats.pass_rate > 0.6 and stats.bomb_rate == 0:
            return PlayerPattern.CONSERVATIVE
        return PlayerPattern.BALANCED

    def infer_hand_structure(self, seat: int) -> InferredStructure:
        """
        由点数期望张数推断手牌结构

        Args:
            seat: 座位

        Returns:
            InferredStructure
        """
        cached = self._structure_cache.get(seat)
        if cached is not None and cached[0] == self.version:
            return cached[1]
        inferred = self._infer_hand_structure(seat)
        self._structure_cache[seat] = (self.version, inferred)
        return inferred

    def _infer_hand_structure(self, seat: int) -> InferredStructure:
        count = self.card_counts[seat]
        if count <= 0:
            return InferredStructure(confidence=1.0)

        mass = self.rank_mass(seat)
        bombs = sum(min(max(m - 3.0, 0.0), 1.0) for r, m in mass.items() if r not in JOKER_RANKS)
        if sum(mass[r] for r in JOKER_RANKS) >= 3.5:
            bombs += 1.0
        triples = sum(1 for r, m in mass.items() if 2.5 <= m < 3.5)
        pairs = sum(1 for r, m in mass.items() if 1.5 <= m < 2.5)

        straights = 0
        run = 0
        for rank in PLAIN_RANKS:
            if is_run_rank(rank, self.trump) and mass[rank] >= 0.5:
                run += 1
            else:
                straights += run // MIN_STRAIGHT_LEN
                run = 0
        straights += run // MIN_STRAIGHT_LEN

        control = sum(mass[r] for r in JOKER_RANKS)
        if self.trump.rank is not None:
            control += mass.get(self.trump.rank, 0.0)

        # 手牌越少、对局越靠后越可信
        confidence = 0.3 + 0.4 * self.played_fraction + 0.3 * (1 - min(count, CARDS_PER_PLAYER) / CARDS_PER_PLAYER)

        return InferredStructure(
            estimated_bombs=bombs,
            estimated_straights=straights,
            estimated_triples=triples,
            estimated_pairs=pairs,
            has_control=control >= 1.0,
            confidence=min(max(confidence, 0.0), 1.0),
        )
