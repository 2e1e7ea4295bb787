"""
牌型定义与出牌生成器

掼蛋共有 10 种牌型
"""
from enum import IntEnum
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .cards import (
    Card,
    Rank,
    TrumpContext,
    NO_TRUMP,
    JOKER_RANKS,
    PLAIN_SUITS,
    card_power,
    card_sort_key,
    group_by_rank,
    is_run_rank,
    sort_cards,
)


class PlayType(IntEnum):
    """牌型"""
    SINGLE = 1            # 单张
    PAIR = 2              # 对子
    TRIPLE = 3            # 三张
    TRIPLE_WITH_PAIR = 4  # 三带二
    TRIPLE_PAIR = 5       # 三连对
    PLATE = 6             # 钢板 (两个连续三张)
    STRAIGHT = 7          # 顺子
    STRAIGHT_FLUSH = 8    # 同花顺
    BOMB = 9              # 炸弹 (四张及以上相同)
    FOUR_KINGS = 10       # 四王


PLAY_TYPE_NAMES: Dict[PlayType, str] = {
    PlayType.SINGLE: '单张',
    PlayType.PAIR: '对子',
    PlayType.TRIPLE: '三张',
    PlayType.TRIPLE_WITH_PAIR: '三带二',
    PlayType.TRIPLE_PAIR: '三连对',
    PlayType.PLATE: '钢板',
    PlayType.STRAIGHT: '顺子',
    PlayType.STRAIGHT_FLUSH: '同花顺',
    PlayType.BOMB: '炸弹',
    PlayType.FOUR_KINGS: '四王',
}

# 顺子的最小长度
MIN_STRAIGHT_LEN = 5
# 炸弹的最小张数
MIN_BOMB_LEN = 4

# 以连续点数组成的牌型
SEQUENCE_TYPES = (PlayType.STRAIGHT, PlayType.STRAIGHT_FLUSH, PlayType.PLATE, PlayType.TRIPLE_PAIR)
# 按三张部分比较的牌型
TRIPLE_FAMILY = (PlayType.TRIPLE, PlayType.TRIPLE_WITH_PAIR, PlayType.PLATE, PlayType.TRIPLE_PAIR)


@dataclass(frozen=True)
class Play:
    """
    不可变出牌表示

    Attributes:
        play_type: 牌型
        cards: 出的牌 (已按主牌规则排序)
        trump: 出牌时的主牌信息
    """
    play_type: PlayType
    cards: Tuple[Card, ...]
    trump: TrumpContext = NO_TRUMP

    @classmethod
    def from_cards(cls, cards: Sequence[Card], trump: TrumpContext = NO_TRUMP) -> Optional['Play']:
        """从牌列表创建出牌，非法牌型返回 None"""
        from .rules import RuleEngine
        play_type = RuleEngine.detect_play_type(cards, trump)
        if play_type is None:
            return None
        return cls(play_type, tuple(sort_cards(cards, trump)), trump)

    @property
    def is_bomb(self) -> bool:
        return self.play_type in (PlayType.BOMB, PlayType.FOUR_KINGS)

    @property
    def card_ids(self) -> Tuple[str, ...]:
        return tuple(sorted(c.id for c in self.cards))

    @property
    def name(self) -> str:
        return PLAY_TYPE_NAMES[self.play_type]

    def __len__(self) -> int:
        return len(self.cards)


class PlayGenerator:
    """
    合法出牌生成器

    根据手牌生成候选出牌。同一点数的多张牌只取代表组合
    (最弱与最强两种)，避免两副牌带来的组合爆炸。
    """

    def __init__(self, hand_cards: Sequence[Card], trump: TrumpContext = NO_TRUMP):
        """
        Args:
            hand_cards: 手牌
            trump: 主牌信息
        """
        self.trump = trump
        self.hand = sort_cards(hand_cards, trump)
        self.rank_groups: Dict[Rank, List[Card]] = group_by_rank(self.hand)

    def _play(self, play_type: PlayType, cards: Sequence[Card]) -> Play:
        return Play(play_type, tuple(sort_cards(cards, self.trump)), self.trump)

    def _variants(self, cards: List[Card], size: int) -> List[List[Card]]:
        """同点数取 size 张：最弱组合，以及牌力不同的最强组合"""
        if len(cards) < size:
            return []
        weakest = cards[:size]
        strongest = cards[-size:]
        if card_power(strongest[0], self.trump) != card_power(weakest[0], self.trump):
            return [weakest, strongest]
        return [weakest]

    def gen_singles(self) -> List[Play]:
        """每种牌力取一张"""
        seen = set()
        result = []
        for card in self.hand:
            power = card_power(card, self.trump)
            if power in seen:
                continue
            seen.add(power)
            result.append(self._play(PlayType.SINGLE, [card]))
        return result

    def gen_pairs(self) -> List[Play]:
        result = []
        for cards in self.rank_groups.values():
            for combo in self._variants(cards, 2):
                result.append(self._play(PlayType.PAIR, combo))
        return result

    def gen_triples(self) -> List[Play]:
        result = []
        for cards in self.rank_groups.values():
            for combo in self._variants(cards, 3):
                result.append(self._play(PlayType.TRIPLE, combo))
        return result

    def gen_bombs(self) -> List[Play]:
        """生成所有炸弹 (不含四王)，每个张数取最强组合"""
        result = []
        for rank, cards in self.rank_groups.items():
            if rank in JOKER_RANKS:
                continue
            for size in range(MIN_BOMB_LEN, len(cards) + 1):
                result.append(self._play(PlayType.BOMB, cards[-size:]))
        return result

    def gen_four_kings(self) -> List[Play]:
        jokers = [c for c in self.hand if c.rank in JOKER_RANKS]
        if len(jokers) == 4:
            return [self._play(PlayType.FOUR_KINGS, jokers)]
        return []

    def gen_triple_with_pair(self) -> List[Play]:
        """三张 (最弱) 搭配另一点数的最弱对子"""
        result = []
        for rank, cards in self.rank_groups.items():
            if len(cards) < 3:
                continue
            triple = cards[:3]
            for other_rank, other in self.rank_groups.items():
                if other_rank == rank or len(other) < 2:
                    continue
                result.append(self._play(PlayType.TRIPLE_WITH_PAIR, triple + other[:2]))
        return result

    def _run_ranks(self, min_count: int) -> List[Rank]:
        """可以参与连续牌型、且张数足够的点数 (升序)"""
        return sorted(
            r for r, cards in self.rank_groups.items()
            if is_run_rank(r, self.trump) and len(cards) >= min_count
        )

    @staticmethod
    def _windows(ranks: List[Rank], length: int) -> List[List[Rank]]:
        """找出所有长度为 length 的连续点数窗口"""
        result = []
        for i in range(len(ranks) - length + 1):
            window = ranks[i:i + length]
            if window[-1] - window[0] == length - 1:
                result.append(window)
        return result

    def gen_plates(self) -> List[Play]:
        result = []
        for window in self._windows(self._run_ranks(3), 2):
            cards = []
            for rank in window:
                cards.extend(self.rank_groups[rank][:3])
            result.append(self._play(PlayType.PLATE, cards))
        return result

    def gen_triple_pairs(self) -> List[Play]:
        result = []
        for window in self._windows(self._run_ranks(2), 3):
            cards = []
            for rank in window:
                cards.extend(self.rank_groups[rank][:2])
            result.append(self._play(PlayType.TRIPLE_PAIR, cards))
        return result

    def gen_straights(self, required_len: int = 0) -> List[Play]:
        """
        生成顺子 (每个点数取最弱的一张)

        最弱组合恰好同花时，再换一张其他花色的牌，保留普通顺子。

        Args:
            required_len: 要求的精确长度，0 表示不限制
        """
        ranks = self._run_ranks(1)
        lengths = [required_len] if required_len else range(MIN_STRAIGHT_LEN, len(ranks) + 1)
        result = []
        for length in lengths:
            for window in self._windows(ranks, length):
                cards = [self.rank_groups[r][0] for r in window]
                if len({c.suit for c in cards}) > 1:
                    result.append(self._play(PlayType.STRAIGHT, cards))
                    continue
                result.append(self._play(PlayType.STRAIGHT_FLUSH, cards))
                mixed = self._mixed_suit_variant(window, cards)
                if mixed is not None:
                    result.append(self._play(PlayType.STRAIGHT, mixed))
        return result

    def _mixed_suit_variant(self, window: List[Rank], cards: List[Card]) -> Optional[List[Card]]:
        """把同花的一组牌换掉一张，变成非同花；做不到时返回 None"""
        suit = cards[0].suit
        for i, rank in enumerate(window):
            for card in self.rank_groups[rank][1:]:
                if card.suit != suit:
                    return cards[:i] + [card] + cards[i + 1:]
        return None

    def gen_straight_flushes(self, required_len: int = 0) -> List[Play]:
        """按花色生成同花顺"""
        result = []
        for suit in PLAIN_SUITS:
            by_rank: Dict[Rank, Card] = {}
            for card in self.hand:
                if card.suit == suit and is_run_rank(card.rank, self.trump):
                    by_rank.setdefault(card.rank, card)
            ranks = sorted(by_rank)
            lengths = [required_len] if required_len else range(MIN_STRAIGHT_LEN, len(ranks) + 1)
            for length in lengths:
                for window in self._windows(ranks, length):
                    result.append(self._play(PlayType.STRAIGHT_FLUSH, [by_rank[r] for r in window]))
        return result

    def generate_all(self) -> List[Play]:
        """
        生成所有候选出牌 (主动出牌)

        Returns:
            去重后的出牌列表
        """
        plays: List[Play] = []
        plays.extend(self.gen_singles())
        plays.extend(self.gen_pairs())
        plays.extend(self.gen_triples())
        plays.extend(self.gen_triple_with_pair())
        plays.extend(self.gen_plates())
        plays.extend(self.gen_triple_pairs())
        plays.extend(self.gen_straights())
        plays.extend(self.gen_straight_flushes())
        plays.extend(self.gen_bombs())
        plays.extend(self.gen_four_kings())
        return self._dedupe(plays)

    def generate_responses(self, last_play: Optional[Play]) -> List[Play]:
        """
        生成能压过上家出牌的候选

        Args:
            last_play: 上家的出牌 (None 表示主动出牌)

        Returns:
            能压过的出牌列表 (不含 PASS)，按从小到大排序
        """
        from .rules import RuleEngine

        if last_play is None:
            return self.generate_all()

        if last_play.play_type == PlayType.FOUR_KINGS:
            return []

        last_type = last_play.play_type
        candidates: List[Play] = []

        if last_type == PlayType.SINGLE:
            candidates.extend(self.gen_singles())
        elif last_type == PlayType.PAIR:
            candidates.extend(self.gen_pairs())
        elif last_type == PlayType.TRIPLE:
            candidates.extend(self.gen_triples())
        elif last_type == PlayType.TRIPLE_WITH_PAIR:
            candidates.extend(self.gen_triple_with_pair())
        elif last_type == PlayType.PLATE:
            candidates.extend(self.gen_plates())
        elif last_type == PlayType.TRIPLE_PAIR:
            candidates.extend(self.gen_triple_pairs())
        elif last_type == PlayType.STRAIGHT:
            candidates.extend(
                p for p in self.gen_straights(len(last_play)) if p.play_type == PlayType.STRAIGHT
            )
        elif last_type == PlayType.STRAIGHT_FLUSH:
            candidates.extend(self.gen_straight_flushes(len(last_play)))

        # 炸弹可以打任何非四王牌型
        candidates.extend(self.gen_bombs())
        candidates.extend(self.gen_four_kings())

        responses = [p for p in self._dedupe(candidates) if RuleEngine.can_beat(p, last_play)]
        return RuleEngine.sort_plays(responses)

    @staticmethod
    def _dedupe(plays: List[Play]) -> List[Play]:
        seen = set()
        result = []
        for play in plays:
            key = play.card_ids
            if key in seen:
                continue
            seen.add(key)
            result.append(play)
        return result


def lowest_card(cards: Sequence[Card], trump: TrumpContext = NO_TRUMP) -> Card:
    """最小的一张牌"""
    return min(cards, key=lambda c: card_sort_key(c, trump))
