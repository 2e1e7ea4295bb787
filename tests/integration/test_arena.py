"""完整对局集成测试"""
import random

import pytest

from core.cards import Rank
from core.rules import RuleEngine
from core.state import GameStateManager, EventType, Phase, default_players
from ai.config import AIConfig, MCTSConfig
from ai.personality import get_personality
from ai.player import AIPlayer
from evaluation import Arena, compare_personalities


def heuristic_config():
    config = AIConfig(thinking_delay=(0.0, 0.0))
    config.strategy.use_mcts = False
    return config


def quick_mcts_config():
    config = AIConfig(thinking_delay=(0.0, 0.0))
    config.mcts = MCTSConfig(max_iterations=10, min_time_ms=5, max_time_ms=10, rollout_depth=10)
    return config


class TestArena:
    """竞技场测试"""

    def test_single_round_at_ace(self):
        arena = Arena(heuristic_config(), seed=1, start_level=Rank.ACE)
        result = arena.play_match()

        assert result.finished
        assert result.winner_team in (0, 1)
        assert result.rounds == 1
        assert result.final_level == Rank.ACE
        assert result.team_scores[result.winner_team] == 1
        assert result.plays > 0

    def test_round_cap(self):
        arena = Arena(heuristic_config(), seed=2, start_level=Rank.TWO, max_rounds=2)
        result = arena.play_match()

        assert result.rounds == 2
        assert not result.finished
        assert sum(result.team_scores) == 2

    def test_run(self):
        arena = Arena(heuristic_config(), seed=3, start_level=Rank.ACE)
        result = arena.run(3)

        assert result.total_games == 3
        assert sum(result.win_rates) == pytest.approx(1.0)
        assert result.avg_rounds == 1.0

    def test_with_mcts(self):
        arena = Arena(quick_mcts_config(), seed=4, start_level=Rank.ACE)
        result = arena.play_match()
        assert result.finished

    def test_compare_personalities(self):
        rates = compare_personalities(
            get_personality("aggressive"),
            get_personality("conservative"),
            n_games=2,
            config=heuristic_config(),
            seed=5,
            start_level=Rank.ACE,
        )
        assert set(rates) == {'激进型', '保守型'}
        assert sum(rates.values()) == pytest.approx(1.0)

    def test_wrong_personality_count(self):
        with pytest.raises(ValueError):
            Arena(personalities=[get_personality("balanced")] * 3)


class TestFullRound:
    """事件驱动的完整一局"""

    def test_every_move_is_legal(self):
        manager = GameStateManager(default_players(ai_seats=(0, 1, 2, 3)), rng=random.Random(9))
        ais = [AIPlayer(seat, heuristic_config(), rng=random.Random(seat)) for seat in range(4)]
        for ai in ais:
            ai.attach(manager)
        events = []
        manager.add_listener(events.append)

        state = manager.start_new_game(level=Rank.ACE)
        for _ in range(1000):
            if state.phase != Phase.PLAYING:
                break
            seat = state.current_player_index
            cards = ais[seat].decide(state)
            if cards is None:
                assert state.last_play is not None
                assert manager.pass_turn(seat).success
            else:
                assert RuleEngine.validate(state.hand(seat), cards, state.last_play, state.trump).ok
                assert manager.play_cards(seat, cards).success
            state = manager.get_state()

        assert state.phase == Phase.GAME_END
        assert events[-1].type == EventType.GAME_END
        # 每个 AI 的记牌器都和真实张数一致
        for ai in ais:
            assert ai.tracker.card_counts == list(state.hand_sizes)
