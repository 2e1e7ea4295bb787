"""
手牌结构分析

把手牌贪心拆分为一组互不重叠的出牌，拆分后的出牌数
近似于出完手牌需要的轮数。
"""
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from core.cards import (
    Card,
    Rank,
    TrumpContext,
    NO_TRUMP,
    JOKER_RANKS,
    PLAIN_SUITS,
    group_by_rank,
    is_run_rank,
    sort_cards,
)
from core.actions import Play, PlayType, MIN_STRAIGHT_LEN

# 各牌型在结构评估中的价值
PLAY_TYPE_VALUE: Dict[PlayType, int] = {
    PlayType.FOUR_KINGS: 100,
    PlayType.BOMB: 50,
    PlayType.STRAIGHT_FLUSH: 40,
    PlayType.PLATE: 30,
    PlayType.TRIPLE_PAIR: 25,
    PlayType.STRAIGHT: 15,
    PlayType.TRIPLE_WITH_PAIR: 12,
    PlayType.TRIPLE: 8,
    PlayType.PAIR: 4,
    PlayType.SINGLE: 1,
}


@dataclass(frozen=True)
class HandStructure:
    """
    手牌拆分结果

    Attributes:
        plays: 拆分出的出牌 (覆盖全部手牌)
        hand_count: 出牌数，即大致需要的轮数
        total_value: 结构价值，越高越好
    """
    plays: Tuple[Play, ...]
    hand_count: int
    total_value: float


class HandStructureAnalyzer:
    """
    手牌结构分析器

    拆分优先级: 四王/炸弹 > 同花顺 > 钢板 > 三连对 > 顺子 >
    三张 (尽量带对) > 对子 > 单张。级牌和王不参与任何连续牌型。
    """

    def __init__(self, trump: TrumpContext = NO_TRUMP):
        self.trump = trump

    def _play(self, play_type: PlayType, cards: Sequence[Card]) -> Play:
        return Play(play_type, tuple(sort_cards(cards, self.trump)), self.trump)

    @staticmethod
    def _remove(hand: List[Card], used: Sequence[Card]) -> List[Card]:
        used_ids = {c.id for c in used}
        return [c for c in hand if c.id not in used_ids]

    def analyze(self, hand: Sequence[Card]) -> HandStructure:
        """
        拆分手牌

        Args:
            hand: 手牌

        Returns:
            HandStructure
        """
        remaining = sort_cards(hand, self.trump)
        plays: List[Play] = []

        for extract in (
            self._extract_bombs,
            self._extract_straight_flushes,
            self._extract_plates,
            self._extract_triple_pairs,
            self._extract_straights,
            self._extract_triples,
            self._extract_pairs,
        ):
            found, remaining = extract(remaining)
            plays.extend(found)

        plays.extend(self._play(PlayType.SINGLE, [c]) for c in remaining)

        return HandStructure(
            plays=tuple(plays),
            hand_count=len(plays),
            total_value=self.total_value(plays),
        )

    def _extract_bombs(self, hand: List[Card]) -> Tuple[List[Play], List[Card]]:
        plays = []
        jokers = [c for c in hand if c.rank in JOKER_RANKS]
        if len(jokers) == 4:
            plays.append(self._play(PlayType.FOUR_KINGS, jokers))
            hand = self._remove(hand, jokers)

        for rank, cards in group_by_rank(hand).items():
            if len(cards) >= 4:
                plays.append(self._play(PlayType.BOMB, cards))
                hand = self._remove(hand, cards)
        return plays, hand

    def _find_run(self, ranks: List[Rank], length: int) -> List[Rank]:
        """在升序点数中找到最低的连续窗口，找不到返回空列表"""
        for i in range(len(ranks) - length + 1):
            window = ranks[i:i + length]
            if window[-1] - window[0] == length - 1:
                return window
        return []

    def _extract_straight_flushes(self, hand: List[Card]) -> Tuple[List[Play], List[Card]]:
        plays = []
        for suit in PLAIN_SUITS:
            while True:
                by_rank: Dict[Rank, Card] = {}
                for card in hand:
                    if card.suit == suit and is_run_rank(card.rank, self.trump):
                        by_rank.setdefault(card.rank, card)
                window = self._find_run(sorted(by_rank), MIN_STRAIGHT_LEN)
                if not window:
                    break
                cards = [by_rank[r] for r in window]
                plays.append(self._play(PlayType.STRAIGHT_FLUSH, cards))
                hand = self._remove(hand, cards)
        return plays, hand

    def _extract_plates(self, hand: List[Card]) -> Tuple[List[Play], List[Card]]:
        plays = []
        groups = group_by_rank(hand)
        triple_ranks = sorted(
            r for r, cards in groups.items() if len(cards) == 3 and is_run_rank(r, self.trump)
        )
        i = 0
        while i < len(triple_ranks) - 1:
            low, high = triple_ranks[i], triple_ranks[i + 1]
            if high - low == 1:
                cards = groups[low] + groups[high]
                plays.append(self._play(PlayType.PLATE, cards))
                hand = self._remove(hand, cards)
                i += 2
            else:
                i += 1
        return plays, hand

    def _extract_triple_pairs(self, hand: List[Card]) -> Tuple[List[Play], List[Card]]:
        plays = []
        while True:
            groups = group_by_rank(hand)
            pair_ranks = sorted(
                r for r, cards in groups.items() if len(cards) == 2 and is_run_rank(r, self.trump)
            )
            window = self._find_run(pair_ranks, 3)
            if not window:
                break
            cards = [c for r in window for c in groups[r]]
            plays.append(self._play(PlayType.TRIPLE_PAIR, cards))
            hand = self._remove(hand, cards)
        return plays, hand

    def _extract_straights(self, hand: List[Card]) -> Tuple[List[Play], List[Card]]:
        """每次取最低的 5 张连续点数，直到找不到为止"""
        groups = group_by_rank(hand)
        ranks = sorted(r for r in groups if is_run_rank(r, self.trump))
        window = self._find_run(ranks, MIN_STRAIGHT_LEN)
        if not window:
            return [], hand

        cards = [groups[r][0] for r in window]
        play_type = PlayType.STRAIGHT
        if len({c.suit for c in cards}) == 1:
            play_type = PlayType.STRAIGHT_FLUSH
        rest_plays, rest = self._extract_straights(self._remove(hand, cards))
        return [self._play(play_type, cards)] + rest_plays, rest

    def _extract_triples(self, hand: List[Card]) -> Tuple[List[Play], List[Card]]:
        """三张优先带最小的对子"""
        plays = []
        groups = group_by_rank(hand)
        triples = [cards for cards in groups.values() if len(cards) == 3]
        pairs = sorted(
            (cards for cards in groups.values() if len(cards) == 2),
            key=lambda cards: sort_cards(cards, self.trump)[0].rank,
        )
        for triple in triples:
            if pairs:
                pair = pairs.pop(0)
                plays.append(self._play(PlayType.TRIPLE_WITH_PAIR, triple + pair))
                hand = self._remove(hand, triple + pair)
            else:
                plays.append(self._play(PlayType.TRIPLE, triple))
                hand = self._remove(hand, triple)
        return plays, hand

    def _extract_pairs(self, hand: List[Card]) -> Tuple[List[Play], List[Card]]:
        plays = []
        for cards in group_by_rank(hand).values():
            if len(cards) == 2:
                plays.append(self._play(PlayType.PAIR, cards))
                hand = self._remove(hand, cards)
        return plays, hand

    @staticmethod
    def total_value(plays: Sequence[Play]) -> float:
        """结构价值: 牌型价值之和，出牌数越多扣分越多"""
        value = 0.0
        for play in plays:
            value += PLAY_TYPE_VALUE[play.play_type]
            if play.play_type == PlayType.BOMB:
                value += (len(play) - 4) * 10
        return value - len(plays) * 2
