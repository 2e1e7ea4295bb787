"""手牌评估测试"""
import pytest

from core.cards import Rank, Suit, TrumpContext, str_to_cards
from core.actions import PlayType
from ai.hand_evaluator import HandEvaluator

TRUMP = TrumpContext(rank=Rank.FIVE, suit=Suit.HEART)


class TestCardValue:
    """单张牌分值测试"""

    @pytest.mark.parametrize("text,value", [
        ("大王", 15),
        ("小王", 12),
        ("H5", 10),
        ("S5", 8),
        ("HA", 8),
        ("SA", 6),
        ("SK", 5),
        ("S10", 2),
        ("S3", 1),
        ("H3", 3),
    ])
    def test_values(self, text, value):
        card, = str_to_cards(text)
        assert HandEvaluator.card_value(card, TRUMP) == value


class TestEvaluate:
    """手牌评估测试"""

    def test_empty(self):
        score = HandEvaluator.evaluate([])
        assert score.total_score == 0
        assert score.bomb_count == 0

    def test_bomb(self):
        score = HandEvaluator.evaluate(str_to_cards("S9 H9 D9 C9"))
        assert score.total_score == 4 + 20
        assert score.bomb_count == 1
        assert score.control_count == 0
        assert score.structure == [PlayType.BOMB]

    def test_longer_bomb_scores_more(self):
        four = HandEvaluator.evaluate(str_to_cards("S9 H9 D9 C9"))
        six = HandEvaluator.evaluate(str_to_cards("S9 H9 D9 C9 S9 H9"))
        assert six.total_score - four.total_score == 2 + 40

    def test_four_kings(self):
        score = HandEvaluator.evaluate(str_to_cards("小王 小王 大王 大王"))
        # 牌值 54 + 主牌加成 8 + 四王 100
        assert score.total_score == 162
        assert score.bomb_count == 1
        assert score.control_count == 4
        assert PlayType.FOUR_KINGS in score.structure

    def test_trump_bonus(self):
        plain = HandEvaluator.evaluate(str_to_cards("S9"), TRUMP)
        trump_suit = HandEvaluator.evaluate(str_to_cards("H9"), TRUMP)
        assert trump_suit.total_score - plain.total_score == 4

    def test_control_cards(self):
        score = HandEvaluator.evaluate(str_to_cards("SA S5 小王 S3"), TRUMP)
        assert score.control_count == 3

    def test_structure_tags(self):
        score = HandEvaluator.evaluate(str_to_cards("S3 H3 D3 S4 H4 S7"))
        assert sorted(score.structure) == [PlayType.PAIR, PlayType.TRIPLE]
