"""牌型与出牌生成测试"""
import pytest

from core.cards import Rank, Suit, TrumpContext, NO_TRUMP, str_to_cards
from core.actions import Play, PlayType, PlayGenerator, lowest_card
from core.rules import RuleEngine

TRUMP = TrumpContext(rank=Rank.FIVE, suit=Suit.HEART)


def generator(text, trump=NO_TRUMP):
    return PlayGenerator(str_to_cards(text), trump)


class TestPlay:
    """Play 测试"""

    def test_from_cards(self):
        play = Play.from_cards(str_to_cards("S9 H9"))
        assert play.play_type == PlayType.PAIR
        assert len(play) == 2
        assert play.name == '对子'

    def test_from_cards_illegal(self):
        assert Play.from_cards(str_to_cards("S9 H10")) is None

    def test_is_bomb(self):
        assert Play.from_cards(str_to_cards("S9 H9 D9 C9")).is_bomb
        assert Play.from_cards(str_to_cards("小王 小王 大王 大王")).is_bomb
        assert not Play.from_cards(str_to_cards("S3 S4 S5 S6 S7")).is_bomb

    def test_card_ids_order_independent(self):
        a = Play.from_cards(str_to_cards("S9 H9"))
        b = Play.from_cards(list(reversed(str_to_cards("S9 H9"))))
        assert a.card_ids == b.card_ids


class TestGenerateBasic:
    """单张、对子、三张生成测试"""

    def test_singles_one_per_power(self):
        singles = generator("S3 H3 S4").gen_singles()
        assert len(singles) == 2

    def test_singles_split_trump_power(self):
        # 主花色级牌与其他级牌牌力不同
        singles = generator("H5 S5 C5", TRUMP).gen_singles()
        assert len(singles) == 2

    def test_pairs(self):
        pairs = generator("S3 H3 S4").gen_pairs()
        assert len(pairs) == 1
        assert pairs[0].play_type == PlayType.PAIR

    def test_triples(self):
        triples = generator("S3 H3 D3 S4 H4").gen_triples()
        assert len(triples) == 1

    def test_triple_with_pair(self):
        plays = generator("S3 H3 D3 S4 H4 S9 H9").gen_triple_with_pair()
        assert len(plays) == 2
        assert all(p.play_type == PlayType.TRIPLE_WITH_PAIR for p in plays)


class TestGenerateBombs:
    """炸弹生成测试"""

    def test_every_size(self):
        bombs = generator("S9 H9 D9 C9 S9").gen_bombs()
        assert sorted(len(b) for b in bombs) == [4, 5]

    def test_jokers_are_not_bombs(self):
        gen = generator("小王 小王 大王 大王")
        assert gen.gen_bombs() == []
        kings = gen.gen_four_kings()
        assert len(kings) == 1
        assert kings[0].play_type == PlayType.FOUR_KINGS


class TestGenerateSequences:
    """连续牌型生成测试"""

    def test_straight(self):
        straights = generator("S3 H4 S5 S6 S7 SK").gen_straights()
        assert len(straights) == 1
        assert straights[0].play_type == PlayType.STRAIGHT

    def test_straight_flush_classified(self):
        straights = generator("S3 S4 S5 S6 S7").gen_straights()
        assert straights[0].play_type == PlayType.STRAIGHT_FLUSH

    def test_straight_lengths(self):
        straights = generator("S3 H4 S5 S6 S7 D8").gen_straights()
        assert sorted(len(s) for s in straights) == [5, 5, 6]

    def test_required_length(self):
        straights = generator("S3 H4 S5 S6 S7 D8").gen_straights(required_len=6)
        assert len(straights) == 1

    def test_straight_flush_per_suit(self):
        flushes = generator("S3 S4 S5 S6 S7 H3 H4 H5 H6 H7").gen_straight_flushes()
        assert {p.cards[0].suit for p in flushes} == {Suit.SPADE, Suit.HEART}

    def test_level_rank_breaks_sequence(self):
        assert generator("S3 H4 S5 S6 S7", TRUMP).gen_straights() == []

    def test_plate(self):
        plates = generator("S3 H3 D3 S4 H4 D4").gen_plates()
        assert len(plates) == 1
        assert plates[0].play_type == PlayType.PLATE

    def test_triple_pairs(self):
        plays = generator("S3 H3 S4 H4 S5 H5 S6 H6").gen_triple_pairs()
        assert len(plays) == 2


class TestGenerateAll:
    """主动出牌生成测试"""

    def test_no_duplicates(self):
        plays = generator("S3 H3 D3 S4 H4 D4 S5 H5 S6 S7").generate_all()
        keys = [p.card_ids for p in plays]
        assert len(keys) == len(set(keys))

    def test_all_legal(self):
        hand = str_to_cards("S3 H3 D3 S4 H4 D4 S5 H5 S6 S7 小王 小王 大王 大王")
        for play in PlayGenerator(hand).generate_all():
            assert RuleEngine.detect_play_type(play.cards) == play.play_type
            assert RuleEngine.validate(hand, play.cards, None).ok


class TestGenerateResponses:
    """跟牌生成测试"""

    def test_sorted_weakest_first(self):
        last = Play.from_cards(str_to_cards("S5"))
        responses = generator("S3 H7 SA S9 H9 D9 C9").generate_responses(last)
        assert [p.play_type for p in responses] == [PlayType.SINGLE] * 3 + [PlayType.BOMB]
        assert responses[0].cards[0].rank == Rank.SEVEN

    def test_lead_returns_all(self):
        gen = generator("S3 H3")
        assert len(gen.generate_responses(None)) == len(gen.generate_all())

    def test_four_kings_unbeatable(self):
        last = Play.from_cards(str_to_cards("小王 小王 大王 大王"))
        assert generator("S9 H9 D9 C9 S9 H9").generate_responses(last) == []

    def test_same_length_straights(self):
        last = Play.from_cards(str_to_cards("D2 D3 C4 C5 C6"))
        responses = generator("S3 H4 S5 S6 S7 S8").generate_responses(last)
        assert responses
        assert all(len(p) == 5 for p in responses)
        assert all(RuleEngine.can_beat(p, last) for p in responses)

    def test_monosuit_weakest_keeps_plain_straight(self):
        """最弱组合同花时，仍能找到普通顺子去压顺子"""
        trump = TrumpContext(rank=Rank.TWO, suit=Suit.HEART)
        hand = str_to_cards("C4 C5 C6 C7 C8 S8")
        last = Play.from_cards(str_to_cards("D3 C4 D5 C6 D7"), trump)
        assert last.play_type == PlayType.STRAIGHT

        responses = PlayGenerator(hand, trump).generate_responses(last)
        straights = [p for p in responses if p.play_type == PlayType.STRAIGHT]
        assert len(straights) == 1
        assert sorted(c.suit for c in straights[0].cards).count(Suit.SPADE) == 1
        assert RuleEngine.validate(hand, straights[0].cards, last, trump).ok
        assert RuleEngine.has_response(hand, last, trump)

    def test_monosuit_without_alternative(self):
        last = Play.from_cards(str_to_cards("D3 C4 D5 C6 D7"))
        assert generator("C4 C5 C6 C7 C8").generate_responses(last) == []

    def test_bomb_must_be_bigger(self):
        last = Play.from_cards(str_to_cards("SA HA DA CA"))
        responses = generator("S9 H9 D9 C9 S9 SK HK DK CK").generate_responses(last)
        assert [len(p) for p in responses] == [5]


class TestLowestCard:
    """最小牌测试"""

    def test_lowest(self):
        cards = str_to_cards("SA S5 C3 H2")
        assert lowest_card(cards, TRUMP).rank == Rank.THREE
