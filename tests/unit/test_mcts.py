"""MCTS 测试"""
import random

import pytest

from core.cards import Suit
from core.actions import Play, PlayType
from ai.config import MCTSConfig
from ai.mcts import MCTSEngine, SimState


def engine(**kwargs):
    return MCTSEngine(MCTSConfig(**kwargs), random.Random(0))


class TestSimState:
    """模拟状态测试"""

    def test_from_game_state(self, make_state):
        state = make_state(["S3 D3", "S9", "S10", "SJ"], current=2)
        sim = SimState.from_game_state(state)
        assert sim.current == 2
        assert [len(h) for h in sim.hands] == [2, 1, 1, 1]
        assert sim.trump == state.trump

    def test_with_play(self, make_state):
        sim = SimState.from_game_state(make_state(["S3 D3 S5", "S9", "S10", "SJ"]))
        play = sim.legal_plays()[0]
        after = sim.with_play(play)

        assert len(after.hands[0]) == 3 - len(play)
        assert after.last_play == play
        assert after.last_player == 0
        assert after.current == 1

    def test_pass_resets_trick(self, make_state):
        sim = SimState.from_game_state(make_state(["S3 D3 S5", "S9", "S10", "SJ"]))
        sim = sim.with_play(sim.legal_plays()[0], reset_trick=True)
        for _ in range(3):
            sim = sim.with_pass(reset_trick=True)
        assert sim.current == 0
        assert sim.last_play is None

    def test_pass_keeps_trick_without_reset(self, make_state):
        sim = SimState.from_game_state(make_state(["S3 D3 S5", "S9", "S10", "SJ"]))
        sim = sim.with_play(sim.legal_plays()[0])
        for _ in range(3):
            sim = sim.with_pass()
        assert sim.current == 0
        assert sim.last_play is not None

    def test_terminal(self, make_state):
        sim = SimState.from_game_state(make_state(["S3", "S9", "S10", "SJ"]))
        assert not sim.is_terminal
        assert sim.with_play(sim.legal_plays()[0]).is_terminal


class TestEvaluate:
    """状态评估测试"""

    def test_own_team_finished(self, make_state):
        sim = SimState.from_game_state(make_state(["", "S9", "S10", "SJ"]))
        assert MCTSEngine.evaluate(sim, 0) == 1.0
        assert MCTSEngine.evaluate(sim, 2) == 1.0
        assert MCTSEngine.evaluate(sim, 1) == 0.0

    def test_in_progress(self, make_state):
        sim = SimState.from_game_state(make_state(["S3 S4", "S9", "S10", "SJ"]))
        assert 0.0 < MCTSEngine.evaluate(sim, 0) < 1.0


class TestSearch:
    """搜索测试"""

    def test_time_limit_scales_with_hand(self):
        mcts = engine()
        assert mcts.time_limit_for(0) == pytest.approx(1000.0)
        assert mcts.time_limit_for(27) == pytest.approx(2000.0)
        assert 1000.0 < mcts.time_limit_for(13) < 2000.0

    def test_fixed_time_limit(self):
        mcts = engine(scale_by_hand=False, time_limit_ms=1500.0)
        assert mcts.time_limit_for(0) == pytest.approx(1500.0)
        assert mcts.time_limit_for(27) == pytest.approx(1500.0)

    def test_finds_winning_pair(self, make_state):
        state = make_state(["S3 D3", "S9 D9 SK", "S10 D10 SQ", "SJ DJ SA"])
        mcts = engine(max_iterations=300)
        play = mcts.search(state, time_limit_ms=60000, determinize=False)
        assert play is not None
        assert play.play_type == PlayType.PAIR
        assert mcts.last_iterations <= 300

    def test_no_response(self, make_state):
        state = make_state(
            ["S3", "S4", "S5", "S6"],
            last_play="小王 小王 大王 大王",
            last_player=3,
        )
        mcts = engine(max_iterations=20)
        assert mcts.search(state, time_limit_ms=1000) is None

    def test_result_is_legal(self, make_state):
        state = make_state(
            ["S3 D3 S7 D8 SK", "S9 D9 SQ", "S10 D10 S2", "SJ DJ SA"],
            last_play="S4",
            last_player=3,
        )
        mcts = engine(max_iterations=50)
        play = mcts.search(state, time_limit_ms=5000)
        legal = {p.card_ids for p in state.legal_plays()}
        assert play.card_ids in legal

    def test_determinize_keeps_counts(self, make_state):
        state = make_state(["S3 D3", "S9 D9 SK", "S10 D10 SQ", "SJ DJ SA"])
        mcts = engine()
        sim = SimState.from_game_state(state)
        shuffled = mcts._determinize(sim, 0)
        assert shuffled.hands[0] == sim.hands[0]
        assert [len(h) for h in shuffled.hands] == [len(h) for h in sim.hands]
        original = sorted(c.id for h in sim.hands[1:] for c in h)
        assert sorted(c.id for h in shuffled.hands[1:] for c in h) == original
