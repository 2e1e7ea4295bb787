"""
规则引擎 - 牌型检测、大小比较、合法性验证

所有方法都是纯函数，无状态
"""
from enum import Enum
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
from collections import Counter

from .cards import (
    Card,
    Rank,
    TrumpContext,
    NO_TRUMP,
    JOKER_RANKS,
    card_power,
    is_run_rank,
    sort_cards,
)
from .actions import Play, PlayType, MIN_STRAIGHT_LEN, MIN_BOMB_LEN, SEQUENCE_TYPES


class PlayError(Enum):
    """可恢复的出牌错误"""
    EMPTY_SELECTION = 'empty_selection'
    NOT_OWNED = 'not_owned'
    ILLEGAL_SHAPE = 'illegal_shape'
    CANNOT_BEAT = 'cannot_beat'
    NO_LEAD_TO_FOLLOW = 'no_lead_to_follow'
    NOT_YOUR_TURN = 'not_your_turn'
    NOT_PLAYING = 'not_playing'


@dataclass(frozen=True)
class ValidationResult:
    """
    验证结果

    Attributes:
        ok: 是否通过
        play: 通过时的牌型
        error: 失败原因
    """
    ok: bool
    play: Optional[Play] = None
    error: Optional[PlayError] = None


class RuleEngine:
    """
    掼蛋规则引擎

    提供牌型检测、大小比较、合法性验证等功能
    所有方法都是静态方法，无状态
    """

    @staticmethod
    def is_consecutive(ranks: Sequence[int]) -> bool:
        """
        检查点数列表是否连续

        Args:
            ranks: 已排序的点数列表

        Returns:
            是否连续
        """
        for i in range(len(ranks) - 1):
            if ranks[i + 1] - ranks[i] != 1:
                return False
        return True

    @staticmethod
    def _is_run(ranks: List[Rank], trump: TrumpContext) -> bool:
        """连续且不含级牌和王"""
        return all(is_run_rank(r, trump) for r in ranks) and RuleEngine.is_consecutive(ranks)

    @staticmethod
    def detect_play_type(cards: Sequence[Card], trump: TrumpContext = NO_TRUMP) -> Optional[PlayType]:
        """
        检测牌型

        Args:
            cards: 牌列表 (顺序无关)
            trump: 主牌信息

        Returns:
            牌型，非法返回 None
        """
        n = len(cards)
        if n == 0:
            return None

        counter = Counter(c.rank for c in cards)
        counts = sorted(counter.values())
        ranks = sorted(counter)

        # 单张
        if n == 1:
            return PlayType.SINGLE

        # 四王
        if n == 4 and set(ranks) == set(JOKER_RANKS) and counts == [2, 2]:
            return PlayType.FOUR_KINGS

        # 同点数: 对子、三张、炸弹
        if len(counter) == 1:
            if n == 2:
                return PlayType.PAIR
            if n == 3:
                return PlayType.TRIPLE
            if n >= MIN_BOMB_LEN:
                return PlayType.BOMB

        # 三带二
        if n == 5 and counts == [2, 3]:
            return PlayType.TRIPLE_WITH_PAIR

        if n == 6:
            # 三连对
            if counts == [2, 2, 2] and RuleEngine._is_run(ranks, trump):
                return PlayType.TRIPLE_PAIR
            # 钢板
            if counts == [3, 3] and RuleEngine._is_run(ranks, trump):
                return PlayType.PLATE

        # 顺子 / 同花顺
        if n >= MIN_STRAIGHT_LEN and len(counter) == n and RuleEngine._is_run(ranks, trump):
            if len({c.suit for c in cards}) == 1:
                return PlayType.STRAIGHT_FLUSH
            return PlayType.STRAIGHT

        return None

    @staticmethod
    def get_main_power(play: Play) -> Tuple[int, int]:
        """
        获取出牌的主牌牌力 (用于大小比较)

        - 单张、对子、三张、炸弹: 最小的一张
        - 三带二: 三张部分
        - 顺子、同花顺、钢板、三连对: 最大的自然点数

        Args:
            play: 出牌

        Returns:
            (档位, 点数)
        """
        trump = play.trump
        cards = list(play.cards)

        if play.play_type in SEQUENCE_TYPES:
            return 0, max(int(c.rank) for c in cards)

        if play.play_type == PlayType.TRIPLE_WITH_PAIR:
            counter = Counter(c.rank for c in cards)
            triple_rank = next(r for r, v in counter.items() if v == 3)
            cards = [c for c in cards if c.rank == triple_rank]

        if play.play_type == PlayType.FOUR_KINGS:
            return 100, 0

        return min(card_power(c, trump) for c in cards)

    @staticmethod
    def compare_plays(a: Play, b: Play) -> int:
        """
        比较两个出牌的大小

        Args:
            a: 出牌 a
            b: 出牌 b (通常是上家的牌)

        Returns:
            1 if a > b, -1 if a < b, 0 if 相等或不可比较
        """
        # 四王最大
        a_kings = a.play_type == PlayType.FOUR_KINGS
        b_kings = b.play_type == PlayType.FOUR_KINGS
        if a_kings or b_kings:
            if a_kings and b_kings:
                return 0
            return 1 if a_kings else -1

        # 炸弹 vs 非炸弹
        if a.is_bomb and not b.is_bomb:
            return 1
        if b.is_bomb and not a.is_bomb:
            return -1

        # 炸弹 vs 炸弹: 先比张数，再比牌力
        if a.is_bomb and b.is_bomb:
            a_key = (len(a), RuleEngine.get_main_power(a))
            b_key = (len(b), RuleEngine.get_main_power(b))
            return 1 if a_key > b_key else (-1 if a_key < b_key else 0)

        # 不同类型或长度不同不可比较
        if a.play_type != b.play_type or len(a) != len(b):
            return 0

        a_power = RuleEngine.get_main_power(a)
        b_power = RuleEngine.get_main_power(b)
        if a_power > b_power:
            return 1
        elif a_power < b_power:
            return -1
        return 0

    @staticmethod
    def can_beat(a: Play, b: Play) -> bool:
        """a 能否压过 b"""
        return RuleEngine.compare_plays(a, b) > 0

    @staticmethod
    def play_strength_key(play: Play) -> Tuple[int, int, Tuple[int, int]]:
        """
        出牌强弱排序键

        普通牌型按主牌牌力，炸弹按张数，四王最后
        """
        if play.play_type == PlayType.FOUR_KINGS:
            return 2, 0, (0, 0)
        if play.is_bomb:
            return 1, len(play), RuleEngine.get_main_power(play)
        return 0, 0, RuleEngine.get_main_power(play)

    @staticmethod
    def sort_plays(plays: Sequence[Play]) -> List[Play]:
        """从弱到强排序"""
        return sorted(plays, key=RuleEngine.play_strength_key)

    @staticmethod
    def validate(
        hand: Sequence[Card],
        cards: Sequence[Card],
        last_play: Optional[Play],
        trump: TrumpContext = NO_TRUMP,
    ) -> ValidationResult:
        """
        验证出牌是否合法

        Args:
            hand: 当前手牌
            cards: 要出的牌
            last_play: 上家的牌 (None 表示主动出牌)
            trump: 主牌信息

        Returns:
            ValidationResult
        """
        if not cards:
            return ValidationResult(False, error=PlayError.EMPTY_SELECTION)

        # 检查牌是否在手中 (同一张牌不能选两次)
        hand_ids = {c.id for c in hand}
        selected_ids = [c.id for c in cards]
        if len(set(selected_ids)) != len(selected_ids) or not hand_ids.issuperset(selected_ids):
            return ValidationResult(False, error=PlayError.NOT_OWNED)

        play_type = RuleEngine.detect_play_type(cards, trump)
        if play_type is None:
            return ValidationResult(False, error=PlayError.ILLEGAL_SHAPE)

        play = Play(play_type, tuple(sort_cards(cards, trump)), trump)

        # 跟牌: 需要能打过上家
        if last_play is not None and not RuleEngine.can_beat(play, last_play):
            return ValidationResult(False, error=PlayError.CANNOT_BEAT)

        return ValidationResult(True, play=play)

    @staticmethod
    def has_response(hand: Sequence[Card], last_play: Play, trump: TrumpContext = NO_TRUMP) -> bool:
        """
        检查手牌是否能打过上家

        Args:
            hand: 当前手牌
            last_play: 上家的牌

        Returns:
            是否能打过
        """
        from .actions import PlayGenerator

        return bool(PlayGenerator(hand, trump).generate_responses(last_play))
