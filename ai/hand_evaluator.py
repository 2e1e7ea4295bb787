"""
手牌静态评估

根据单张牌值、炸弹和主牌数量给出手牌强度分数
所有方法都是纯函数，无状态
"""
from dataclasses import dataclass, field
from typing import List, Sequence
from collections import Counter

from core.cards import Card, Rank, TrumpContext, NO_TRUMP, JOKER_RANKS, is_trumpish
from core.actions import PlayType

# 普通牌的基础分
RANK_BASE_VALUE = {
    Rank.ACE: 6,
    Rank.KING: 5,
    Rank.QUEEN: 4,
    Rank.JACK: 3,
    Rank.TEN: 2,
}

BOMB_BONUS = 20
FOUR_KINGS_BONUS = 100
TRUMP_CARD_BONUS = 2


@dataclass(frozen=True)
class HandScore:
    """
    手牌评估结果

    Attributes:
        total_score: 总分
        bomb_count: 炸弹数量 (含四王)
        control_count: 控制牌数量 (王、级牌、A)
        structure: 可组成的牌型标签
    """
    total_score: float
    bomb_count: int
    control_count: int
    structure: List[PlayType] = field(default_factory=list)


class HandEvaluator:
    """手牌评估器"""

    @staticmethod
    def card_value(card: Card, trump: TrumpContext = NO_TRUMP) -> int:
        """
        单张牌的分值

        大王 15，小王 12，主花色级牌 10，其他级牌 8，
        主花色普通牌在基础分上加 2
        """
        if card.rank == Rank.BIG_JOKER:
            return 15
        if card.rank == Rank.SMALL_JOKER:
            return 12
        if trump.rank is not None and card.rank == trump.rank:
            return 10 if card.suit == trump.suit else 8
        base = RANK_BASE_VALUE.get(card.rank, 1)
        if trump.suit is not None and card.suit == trump.suit:
            return base + 2
        return base

    @staticmethod
    def evaluate(hand: Sequence[Card], trump: TrumpContext = NO_TRUMP) -> HandScore:
        """
        评估手牌强度

        Args:
            hand: 手牌
            trump: 主牌信息

        Returns:
            HandScore
        """
        score = 0
        bomb_count = 0
        control_count = 0
        structure: List[PlayType] = []

        for card in hand:
            score += HandEvaluator.card_value(card, trump)
            if is_trumpish(card, trump):
                score += TRUMP_CARD_BONUS
            if card.rank in JOKER_RANKS or card.rank == Rank.ACE or card.rank == trump.rank:
                control_count += 1

        counter = Counter(c.rank for c in hand)

        # 炸弹
        for rank, count in counter.items():
            if count >= 4:
                bomb_count += 1
                score += BOMB_BONUS * (count - 3)
                structure.append(PlayType.BOMB)

        # 四王
        if sum(counter[r] for r in JOKER_RANKS) == 4:
            bomb_count += 1
            score += FOUR_KINGS_BONUS
            structure.append(PlayType.FOUR_KINGS)

        for count in counter.values():
            if count == 3:
                structure.append(PlayType.TRIPLE)
            elif count == 2:
                structure.append(PlayType.PAIR)

        return HandScore(
            total_score=score,
            bomb_count=bomb_count,
            control_count=control_count,
            structure=structure,
        )
