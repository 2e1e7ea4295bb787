"""游戏状态测试"""
import random

import pytest

from core.cards import Rank, PLAIN_SUITS, str_to_cards
from core.actions import Play, PlayType
from core.rules import PlayError
from core.state import (
    Phase,
    EventType,
    GameState,
    GameStateManager,
    default_players,
    teammate_index,
    opponent_indices,
    next_level,
)


class TestSeats:
    """座位关系测试"""

    def test_teammate(self):
        assert teammate_index(0) == 2
        assert teammate_index(3) == 1

    def test_opponents(self):
        assert opponent_indices(0) == (1, 3)
        assert opponent_indices(1) == (2, 0)

    def test_teams(self):
        assert [p.team for p in default_players()] == [0, 1, 0, 1]


class TestNextLevel:
    """升级测试"""

    def test_two_to_three(self):
        assert next_level(Rank.TWO) == Rank.THREE

    def test_king_to_ace(self):
        assert next_level(Rank.KING) == Rank.ACE

    def test_ace_stays(self):
        assert next_level(Rank.ACE) == Rank.ACE


class TestInitialState:
    """初始状态测试"""

    def test_waiting(self):
        state = GameState.initial()
        assert state.phase == Phase.WAITING
        assert len(state.players) == 4
        assert state.level == Rank.TWO

    def test_wrong_player_count(self):
        with pytest.raises(ValueError):
            GameState.initial(default_players()[:3])

    def test_invalid_seat(self):
        with pytest.raises(IndexError):
            GameState.initial().player(4)


class TestDeal:
    """发牌测试"""

    def test_deal(self):
        state = GameState.initial().with_deal(random.Random(0))
        assert state.phase == Phase.PLAYING
        assert state.hand_sizes == (27, 27, 27, 27)
        assert len({c.id for p in state.players for c in p.hand}) == 108
        assert state.deck == ()
        assert state.round_number == 1
        assert state.cards_played == 0

    def test_trump_suit(self):
        state = GameState.initial().with_deal(random.Random(5), starting_index=1)
        assert state.trump.rank == Rank.TWO
        assert state.trump.suit in PLAIN_SUITS
        level_suits = {c.suit for c in state.hand(1) if c.rank == Rank.TWO}
        if level_suits:
            assert state.trump.suit in level_suits
        assert state.current_player_index == 1

    def test_cannot_deal_while_playing(self):
        state = GameState.initial().with_deal(random.Random(0))
        with pytest.raises(ValueError):
            state.with_deal(random.Random(1))


class TestTransitions:
    """状态转换测试"""

    def test_play(self, make_state):
        state = make_state(["S3 S4", "S9", "S10", "SJ"])
        play = Play.from_cards([state.hand(0)[0]], state.trump)
        new_state = state.with_play(play)

        assert len(new_state.hand(0)) == 1
        assert len(state.hand(0)) == 2
        assert new_state.current_player_index == 1
        assert new_state.last_play == play
        assert new_state.last_play_player_index == 0
        assert len(new_state.play_history) == 1

    def test_play_cards_not_in_hand(self, make_state):
        state = make_state(["S3 S4", "S9", "S10", "SJ"])
        with pytest.raises(ValueError):
            state.with_play(Play.from_cards(str_to_cards("SA"), state.trump))

    def test_cannot_pass_when_leading(self, make_state):
        state = make_state(["S3 S4", "S9", "S10", "SJ"])
        with pytest.raises(ValueError):
            state.with_pass()

    def test_trick_reset(self, make_state):
        state = make_state(["S3 S4", "S9 H9", "S10 H10", "SJ HJ"])
        state = state.with_play(Play.from_cards([state.hand(0)[0]], state.trump))
        for _ in range(3):
            state = state.with_pass()

        assert state.current_player_index == 0
        assert state.last_play is None
        assert state.current_trick == ()
        assert state.trick_winners == (0,)
        assert len(state.play_history) == 4
        assert sum(1 for r in state.play_history if r.is_pass) == 3

    def test_round_end(self, make_state):
        state = make_state(["S3", "S9 H9", "S10 H10", "SJ HJ"])
        state = state.with_play(Play.from_cards(state.hand(0), state.trump))

        assert state.phase == Phase.ROUND_END
        assert state.round_winner == 0
        assert state.team_scores == (1, 0)
        assert state.level == Rank.THREE

    def test_game_end_at_ace(self, make_state):
        state = make_state(["S3 S4", "S9", "S10 H10", "SJ HJ"], current=1, level=Rank.ACE)
        state = state.with_play(Play.from_cards(state.hand(1), state.trump))

        assert state.phase == Phase.GAME_END
        assert state.is_finished
        assert state.team_scores == (0, 1)

    def test_legal_plays(self, make_state):
        state = make_state(["S3 H3", "S9", "S10", "SJ"])
        types = {p.play_type for p in state.legal_plays()}
        assert types == {PlayType.SINGLE, PlayType.PAIR}

    def test_legal_plays_following(self, make_state):
        state = make_state(["S3 SK", "S9", "S10", "SJ"], last_play="SQ", last_player=3)
        plays = state.legal_plays()
        assert len(plays) == 1
        assert plays[0].cards[0].rank == Rank.KING


class TestGameStateManager:
    """状态管理器测试"""

    def setup_method(self):
        self.manager = GameStateManager(rng=random.Random(11))
        self.events = []
        self.manager.add_listener(self.events.append)

    def test_not_started(self):
        result = self.manager.pass_turn(0)
        assert not result.success
        assert result.error == PlayError.NOT_PLAYING

    def test_start_new_game(self):
        state = self.manager.start_new_game()
        assert state.phase == Phase.PLAYING
        assert state.current_player_index == 0
        assert [e.type for e in self.events] == [EventType.DEAL]

    def test_start_level(self):
        state = self.manager.start_new_game(level=Rank.ACE)
        assert state.level == Rank.ACE
        assert state.trump.rank == Rank.ACE

    def test_not_your_turn(self):
        self.manager.start_new_game()
        state = self.manager.get_state()
        result = self.manager.play_cards(1, [state.hand(1)[0]])
        assert result.error == PlayError.NOT_YOUR_TURN
        assert self.manager.get_state() is state

    def test_no_lead_to_follow(self):
        self.manager.start_new_game()
        result = self.manager.pass_turn(0)
        assert result.error == PlayError.NO_LEAD_TO_FOLLOW

    def test_invalid_play_leaves_state(self):
        self.manager.start_new_game()
        state = self.manager.get_state()
        hand = state.hand(0)
        # 两张点数不同的牌不是合法牌型
        low = hand[0]
        high = next(c for c in hand if c.rank != low.rank)
        result = self.manager.play_cards(0, [low, high])
        assert result.error == PlayError.ILLEGAL_SHAPE
        assert self.manager.get_state() is state

    def test_trick_events(self):
        state = self.manager.start_new_game()
        lead = state.legal_plays()[0]
        assert self.manager.play_cards(0, lead.cards).success
        for seat in (1, 2, 3):
            assert self.manager.pass_turn(seat).success

        types = [e.type for e in self.events]
        assert types == [
            EventType.DEAL, EventType.PLAY, EventType.PASS,
            EventType.PASS, EventType.PASS, EventType.TRICK_RESET,
        ]
        assert self.events[-1].player_index == 0
        assert self.manager.get_state().last_play is None

    def test_next_round_requires_round_end(self):
        self.manager.start_new_game()
        with pytest.raises(ValueError):
            self.manager.start_next_round()

    def test_round_and_next_round(self, make_state):
        self.manager.start_new_game()
        self.manager._state = make_state(["S3", "S9 H9", "S10 H10", "SJ HJ"])
        result = self.manager.play_cards(0, self.manager.get_state().hand(0))

        assert result.success
        assert self.events[-1].type == EventType.ROUND_END
        state = self.manager.start_next_round()
        assert state.phase == Phase.PLAYING
        assert state.level == Rank.THREE
        assert state.current_player_index == 0
        assert state.hand_sizes == (27, 27, 27, 27)

    def test_game_end_event(self, make_state):
        self.manager.start_new_game()
        self.manager._state = make_state(["S3", "S9 H9", "S10 H10", "SJ HJ"], level=Rank.ACE)
        self.manager.play_cards(0, self.manager.get_state().hand(0))

        assert [e.type for e in self.events[-2:]] == [EventType.ROUND_END, EventType.GAME_END]
        assert self.manager.get_state().is_finished

    def test_remove_listener(self):
        self.manager.remove_listener(self.events.append)
        self.manager.start_new_game()
        assert self.events == []


class TestCardConservation:
    """随机对局中牌的总数不变"""

    @staticmethod
    def _total(state):
        played = sum(len(r.play) for r in state.play_history if not r.is_pass)
        return sum(state.hand_sizes) + played + len(state.deck)

    @pytest.mark.parametrize("seed", range(15))
    def test_random_round(self, seed):
        rng = random.Random(seed)
        manager = GameStateManager(rng=random.Random(seed))
        state = manager.start_new_game()
        assert self._total(state) == 108

        for _ in range(2000):
            if state.phase != Phase.PLAYING:
                break
            seat = state.current_player_index
            legal = state.legal_plays()
            if state.last_play is not None and (not legal or rng.random() < 0.5):
                result = manager.pass_turn(seat)
            else:
                result = manager.play_cards(seat, rng.choice(legal).cards)
            assert result.success

            state = manager.get_state()
            assert self._total(state) == 108
            ids = [c.id for p in state.players for c in p.hand]
            assert len(ids) == len(set(ids))

        assert state.phase in (Phase.ROUND_END, Phase.GAME_END)
