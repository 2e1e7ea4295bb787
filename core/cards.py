"""
牌的定义与编码

掼蛋使用两副牌共 108 张：
- 2-10, J, Q, K, A 每种花色各 2 张 (共 104 张)
- 小王、大王各 2 张

牌的大小受本局主牌 (级牌 + 主花色) 影响，因此比较函数都需要
传入 TrumpContext。
"""
from enum import IntEnum
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import random

import numpy as np


class Suit(IntEnum):
    """花色 (数值即花色大小顺序)"""
    CLUB = 0
    DIAMOND = 1
    SPADE = 2
    HEART = 3
    JOKER = 4


class Rank(IntEnum):
    """牌面值 (2 最小，A 最大)"""
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14
    SMALL_JOKER = 15
    BIG_JOKER = 16


# 普通花色与普通点数
PLAIN_SUITS: Tuple[Suit, ...] = (Suit.SPADE, Suit.HEART, Suit.DIAMOND, Suit.CLUB)
PLAIN_RANKS: Tuple[Rank, ...] = tuple(r for r in Rank if r <= Rank.ACE)
JOKER_RANKS: Tuple[Rank, ...] = (Rank.SMALL_JOKER, Rank.BIG_JOKER)

# 级别顺序 (从 2 打到 A)
LEVEL_ORDER: Tuple[Rank, ...] = PLAIN_RANKS

NUM_DECKS = 2
TOTAL_CARDS = 108
CARDS_PER_PLAYER = 27
PLAYER_COUNT = 4

RANK_TO_STR: Dict[Rank, str] = {
    Rank.TWO: '2', Rank.THREE: '3', Rank.FOUR: '4', Rank.FIVE: '5',
    Rank.SIX: '6', Rank.SEVEN: '7', Rank.EIGHT: '8', Rank.NINE: '9',
    Rank.TEN: '10', Rank.JACK: 'J', Rank.QUEEN: 'Q', Rank.KING: 'K',
    Rank.ACE: 'A', Rank.SMALL_JOKER: '小王', Rank.BIG_JOKER: '大王',
}

STR_TO_RANK: Dict[str, Rank] = {v: k for k, v in RANK_TO_STR.items()}

SUIT_TO_STR: Dict[Suit, str] = {
    Suit.SPADE: '♠', Suit.HEART: '♥', Suit.DIAMOND: '♦', Suit.CLUB: '♣', Suit.JOKER: '',
}

STR_TO_SUIT: Dict[str, Suit] = {v: k for k, v in SUIT_TO_STR.items() if v}


@dataclass(frozen=True)
class Card:
    """
    单张牌 (不可变)

    Attributes:
        suit: 花色
        rank: 牌面值
        id: 唯一标识，区分两副牌中相同的牌
    """
    suit: Suit
    rank: Rank
    id: str

    @property
    def is_joker(self) -> bool:
        return self.rank in JOKER_RANKS

    def __str__(self) -> str:
        return card_to_str(self)


@dataclass(frozen=True)
class TrumpContext:
    """
    本局主牌信息

    Attributes:
        rank: 级牌点数 (None 表示无级牌)
        suit: 主花色 (None 表示无主花色)
    """
    rank: Optional[Rank] = None
    suit: Optional[Suit] = None


NO_TRUMP = TrumpContext()


def _make_deck(deck_number: int) -> List[Card]:
    """创建一副 54 张的牌"""
    cards = []
    for suit in PLAIN_SUITS:
        for rank in PLAIN_RANKS:
            cards.append(Card(suit, rank, f"{deck_number}-{suit.name.lower()}-{RANK_TO_STR[rank]}"))
    cards.append(Card(Suit.JOKER, Rank.SMALL_JOKER, f"{deck_number}-joker-small"))
    cards.append(Card(Suit.JOKER, Rank.BIG_JOKER, f"{deck_number}-joker-big"))
    return cards


def create_deck() -> List[Card]:
    """创建两副牌合成的 108 张牌 (未洗牌)"""
    cards = []
    for deck_number in range(1, NUM_DECKS + 1):
        cards.extend(_make_deck(deck_number))
    return cards


# 参考牌组 (108 张)，顺序固定，用于向量编码
FULL_DECK: Tuple[Card, ...] = tuple(create_deck())

# 牌 id 到向量下标的映射
CARD_INDEX: Dict[str, int] = {card.id: i for i, card in enumerate(FULL_DECK)}


class Deck:
    """
    牌堆

    洗牌使用注入的 random.Random，便于复现
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._cards: List[Card] = create_deck()

    def shuffle(self) -> None:
        """洗牌 (Fisher-Yates)"""
        self.rng.shuffle(self._cards)

    def deal(self, count: int) -> List[Card]:
        """
        发牌

        Args:
            count: 发牌数量

        Returns:
            发出的牌
        """
        if count > len(self._cards):
            raise ValueError(f"Not enough cards in deck: {count} > {len(self._cards)}")
        dealt = self._cards[:count]
        self._cards = self._cards[count:]
        return dealt

    @property
    def remaining_count(self) -> int:
        return len(self._cards)

    @property
    def cards(self) -> List[Card]:
        return list(self._cards)

    def is_empty(self) -> bool:
        return not self._cards


def card_tier(card: Card, trump: TrumpContext = NO_TRUMP) -> int:
    """
    牌的档位

    大王 5 > 小王 4 > 主花色级牌 3 > 其他级牌 2 > 主花色非级牌 1 > 普通牌 0
    """
    if card.rank == Rank.BIG_JOKER:
        return 5
    if card.rank == Rank.SMALL_JOKER:
        return 4
    if trump.rank is not None and card.rank == trump.rank:
        if trump.suit is not None and card.suit == trump.suit:
            return 3
        return 2
    if trump.suit is not None and card.suit == trump.suit:
        return 1
    return 0


def card_power(card: Card, trump: TrumpContext = NO_TRUMP) -> Tuple[int, int]:
    """
    牌力 (忽略花色)，用于比较出牌大小

    Returns:
        (档位, 点数)
    """
    return card_tier(card, trump), int(card.rank)


def card_sort_key(card: Card, trump: TrumpContext = NO_TRUMP) -> Tuple[int, int, int, str]:
    """排序键：档位、点数、花色，最后用 id 区分两副牌中的同一张牌"""
    return card_tier(card, trump), int(card.rank), int(card.suit), card.id


def compare_cards(a: Card, b: Card, trump: TrumpContext = NO_TRUMP) -> int:
    """
    比较两张牌 (严格全序)

    Returns:
        1 if a > b, -1 if a < b, 0 仅当是同一张牌
    """
    ka = card_sort_key(a, trump)
    kb = card_sort_key(b, trump)
    if ka > kb:
        return 1
    if ka < kb:
        return -1
    return 0


def sort_cards(cards: Iterable[Card], trump: TrumpContext = NO_TRUMP) -> List[Card]:
    """从小到大排序"""
    return sorted(cards, key=lambda c: card_sort_key(c, trump))


def is_trumpish(card: Card, trump: TrumpContext = NO_TRUMP) -> bool:
    """是否为王、级牌或主花色牌"""
    return card_tier(card, trump) > 0


def cards_to_array(cards: Iterable[Card]) -> np.ndarray:
    """
    将牌转换为 108 维 0/1 向量

    下标为牌在 FULL_DECK 中的位置

    Args:
        cards: 牌列表

    Returns:
        108 维 numpy 数组
    """
    array = np.zeros(TOTAL_CARDS, dtype=np.float64)
    for card in cards:
        array[CARD_INDEX[card.id]] = 1.0
    return array


def array_to_cards(array: np.ndarray) -> List[Card]:
    """将 108 维向量转换回牌列表 (非零位置)"""
    return [FULL_DECK[i] for i in np.flatnonzero(array > 0)]


def card_to_str(card: Card) -> str:
    """单张牌的显示字符串，如 "♠A"、"大王" """
    return f"{SUIT_TO_STR[card.suit]}{RANK_TO_STR[card.rank]}"


def cards_to_str(cards: Sequence[Card], trump: TrumpContext = NO_TRUMP) -> str:
    """
    将牌列表转换为可读字符串

    Returns:
        如 "♣3 ♦3 ♠5"
    """
    return ' '.join(card_to_str(c) for c in sort_cards(cards, trump))


def group_by_rank(cards: Iterable[Card]) -> Dict[Rank, List[Card]]:
    """按点数分组 (保持输入顺序)"""
    groups: Dict[Rank, List[Card]] = {}
    for card in cards:
        groups.setdefault(card.rank, []).append(card)
    return groups


def is_run_rank(rank: Rank, trump: TrumpContext = NO_TRUMP) -> bool:
    """能否参与顺子/钢板/连对 (级牌和王不能)"""
    return rank <= Rank.ACE and rank != trump.rank


_ASCII_SUITS: Dict[str, Suit] = {'S': Suit.SPADE, 'H': Suit.HEART, 'D': Suit.DIAMOND, 'C': Suit.CLUB}


def str_to_cards(text: str) -> List[Card]:
    """
    将字符串转换为牌列表 (cards_to_str 的逆操作)

    花色可以用符号或 S/H/D/C，如 "♠A H10 小王"。
    同一张牌出现两次时第二张取自第 2 副牌。

    Raises:
        ValueError: 无法识别的牌，或同一张牌超过两张
    """
    result = []
    copies: Dict[Tuple[Suit, Rank], int] = {}
    for token in text.split():
        if token in ('小王', '大王'):
            suit, rank = Suit.JOKER, STR_TO_RANK[token]
        else:
            suit = STR_TO_SUIT.get(token[0])
            if suit is None:
                suit = _ASCII_SUITS.get(token[0].upper())
            rank = STR_TO_RANK.get(token[1:].upper())
            if suit is None or rank is None:
                raise ValueError(f"Invalid card: {token}")
        deck_number = copies.get((suit, rank), 0) + 1
        if deck_number > NUM_DECKS:
            raise ValueError(f"Too many copies of {token}")
        copies[(suit, rank)] = deck_number
        if suit == Suit.JOKER:
            kind = 'small' if rank == Rank.SMALL_JOKER else 'big'
            card_id = f"{deck_number}-joker-{kind}"
        else:
            card_id = f"{deck_number}-{suit.name.lower()}-{RANK_TO_STR[rank]}"
        result.append(Card(suit, rank, card_id))
    return result
