"""记牌器测试"""
import numpy as np
import pytest

from core.cards import CARD_INDEX, FULL_DECK, str_to_cards
from core.actions import Play
from ai.card_tracker import CardTracker, PlayerPattern


def card_by_id(card_id):
    return FULL_DECK[CARD_INDEX[card_id]]


class TestReset:
    """重置测试"""

    def test_probability_rows(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)

        probs = tracker.probabilities
        assert probs[0].sum() == pytest.approx(27)
        for seat in (1, 2, 3):
            assert probs[seat].sum() == pytest.approx(27)
            assert probs[seat].max() <= 1.0 + 1e-9

    def test_own_cards_excluded(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        own = [CARD_INDEX[c.id] for c in ordered_state.hand(0)]
        for seat in (1, 2, 3):
            assert np.all(tracker.probabilities[seat][own] == 0)

    def test_card_views(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        assert len(tracker.get_unseen_cards()) == 81
        assert len(tracker.get_remaining_cards()) == 108
        assert tracker.played_fraction == 0.0
        assert sum(tracker.rank_mass(1).values()) == pytest.approx(27)

    def test_replays_history(self, make_state):
        state = make_state(["S3 S4", "S9 H9", "S10 H10", "SJ HJ"])
        state = state.with_play(Play.from_cards([state.hand(0)[0]], state.trump))
        state = state.with_pass()

        tracker = CardTracker(2)
        tracker.reset(state)
        assert tracker.get_player_stats(0).plays == 1
        assert tracker.get_player_stats(1).passes == 1
        assert tracker.played.sum() == 1
        assert tracker.get_player_card_count(0) == 1


class TestObserve:
    """观察出牌与不要测试"""

    def test_observe_play(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        joker = card_by_id("1-joker-small")
        tracker.observe_play(1, [joker])

        assert tracker.get_player_card_count(1) == 26
        assert np.all(tracker.probabilities[:, CARD_INDEX[joker.id]] == 0)
        assert tracker.probabilities[1].sum() == pytest.approx(26)
        assert tracker.probabilities[2].sum() == pytest.approx(27)
        assert tracker.played_fraction == pytest.approx(1 / 108)

    def test_observe_own_play(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        card = ordered_state.hand(0)[0]
        tracker.observe_play(0, [card])

        assert not tracker.own_hand[CARD_INDEX[card.id]]
        assert tracker.probabilities[0].sum() == pytest.approx(26)

    def test_pass_lowers_beating_cards(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        seven = card_by_id("1-club-7")
        tracker.observe_play(1, [seven])
        lead = Play.from_cards([seven], ordered_state.trump)
        tracker.observe_pass(2, lead)

        row = tracker.get_probability_map(2)
        king = CARD_INDEX["1-club-K"]
        three = CARD_INDEX["1-club-3"]
        assert row[king] < row[three]
        assert row.sum() == pytest.approx(27)
        assert tracker.get_player_stats(2).pass_rate == 1.0

    def test_pass_without_lead(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        before = tracker.get_probability_map(2)
        tracker.observe_pass(2, None)
        assert np.allclose(tracker.get_probability_map(2), before)
        assert tracker.get_player_stats(2).passes == 1


class TestPattern:
    """出牌风格测试"""

    def test_few_actions_balanced(self):
        tracker = CardTracker(0)
        tracker.observe_pass(1, None)
        assert tracker.get_player_pattern(1) == PlayerPattern.BALANCED

    def test_conservative(self):
        tracker = CardTracker(0)
        for _ in range(3):
            tracker.observe_pass(1, None)
        assert tracker.get_player_pattern(1) == PlayerPattern.CONSERVATIVE

    def test_aggressive(self):
        tracker = CardTracker(0)
        for text in ("S3", "S4", "S5"):
            tracker.observe_play(1, str_to_cards(text))
        assert tracker.get_player_pattern(1) == PlayerPattern.AGGRESSIVE

    def test_bomb_rate(self):
        tracker = CardTracker(0)
        tracker.observe_play(3, str_to_cards("S9 H9 D9 C9"))
        stats = tracker.get_player_stats(3)
        assert stats.bombs == 1
        assert stats.bomb_rate == 1.0


class TestEstimates:
    """炸弹与结构推断测试"""

    def test_estimate_bomb_count(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        # 13 个点数都还有 4 张以上没出现，四个王也都没出现
        assert tracker.estimate_bomb_count(1) == pytest.approx(13 * 0.3 + 0.5)

    def test_empty_seat(self, make_state):
        tracker = CardTracker(0)
        tracker.reset(make_state(["S3", "", "S4", "S5"]))
        assert tracker.estimate_bomb_count(1) == 0.0
        inferred = tracker.infer_hand_structure(1)
        assert inferred.confidence == 1.0
        assert inferred.estimated_bombs == 0.0

    def test_infer_cached_per_version(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        first = tracker.infer_hand_structure(1)
        assert tracker.infer_hand_structure(1) is first
        tracker.observe_play(1, [card_by_id("1-club-3")])
        assert tracker.infer_hand_structure(1) is not first

    def test_infer_confidence_range(self, ordered_state):
        tracker = CardTracker(0)
        tracker.reset(ordered_state)
        inferred = tracker.infer_hand_structure(3)
        assert 0.0 <= inferred.confidence <= 1.0
        assert inferred.has_control
