"""
对战竞技场

让四个 AI 玩家通过状态管理器打完整场比赛并统计结果
"""
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, field
import logging
import random

import numpy as np

from core.cards import Rank
from core.state import GameStateManager, GameEvent, EventType, Phase, default_players
from ai.config import AIConfig
from ai.personality import AIPersonality, get_personality
from ai.player import AIPlayer

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """
    单场比赛结果

    Attributes:
        winner_team: 获胜队伍，达到局数上限仍未结束时为 -1
        rounds: 打了几局
        team_scores: 两队赢的局数
        final_level: 结束时的级牌
        plays: 出牌次数
        passes: 不要次数
        bombs: 炸弹次数 (含四王)
    """
    winner_team: int
    rounds: int
    team_scores: Tuple[int, int]
    final_level: Rank
    plays: int = 0
    passes: int = 0
    bombs: int = 0

    @property
    def finished(self) -> bool:
        return self.winner_team >= 0


@dataclass
class TournamentResult:
    """多场比赛汇总"""
    matches: List[MatchResult] = field(default_factory=list)

    @property
    def total_games(self) -> int:
        return len(self.matches)

    @property
    def win_rates(self) -> Tuple[float, float]:
        """两队胜率 (未结束的比赛计入分母)"""
        if not self.matches:
            return (0.0, 0.0)
        winners = np.array([m.winner_team for m in self.matches])
        return (float(np.mean(winners == 0)), float(np.mean(winners == 1)))

    @property
    def avg_rounds(self) -> float:
        if not self.matches:
            return 0.0
        return float(np.mean([m.rounds for m in self.matches]))

    @property
    def avg_bombs(self) -> float:
        if not self.matches:
            return 0.0
        return float(np.mean([m.bombs for m in self.matches]))

    def __repr__(self) -> str:
        team0, team1 = self.win_rates
        lines = [f"Tournament Results ({self.total_games} games):"]
        lines.append(f"  Team 0: {team0:.2%}")
        lines.append(f"  Team 1: {team1:.2%}")
        lines.append(f"  Avg rounds: {self.avg_rounds:.1f}, avg bombs: {self.avg_bombs:.1f}")
        return "\n".join(lines)


class _MatchStats:
    """通过事件统计出牌次数"""

    def __init__(self):
        self.plays = 0
        self.passes = 0
        self.bombs = 0

    def __call__(self, event: GameEvent) -> None:
        if event.type == EventType.PLAY:
            self.plays += 1
            if event.play.is_bomb:
                self.bombs += 1
        elif event.type == EventType.PASS:
            self.passes += 1


class Arena:
    """
    对战竞技场

    每个座位一个 AIPlayer，同步驱动 (不加思考延迟)
    """

    def __init__(
        self,
        config: Optional[AIConfig] = None,
        personalities: Optional[Sequence[AIPersonality]] = None,
        seed: Optional[int] = None,
        start_level: Rank = Rank.TWO,
        max_rounds: int = 50,
        max_turns_per_round: int = 2000,
    ):
        """
        Args:
            config: 四个 AI 共用的配置
            personalities: 四个座位的性格，默认取 config.personality
            seed: 随机种子
            start_level: 起始级牌
            max_rounds: 单场最多打几局
            max_turns_per_round: 单局最多行动次数
        """
        self.config = config or AIConfig()
        if personalities is None:
            personalities = [get_personality(self.config.personality)] * 4
        if len(personalities) != 4:
            raise ValueError(f"Need 4 personalities, got {len(personalities)}")
        self.personalities = list(personalities)
        self.rng = random.Random(seed)
        self.start_level = start_level
        self.max_rounds = max_rounds
        self.max_turns_per_round = max_turns_per_round

    def play_match(self) -> MatchResult:
        """打一场比赛，直到有队伍打过 A 或达到局数上限"""
        manager = GameStateManager(
            players=default_players(ai_seats=(0, 1, 2, 3)),
            rng=random.Random(self.rng.random()),
        )
        ais = [
            AIPlayer(seat, self.config, self.personalities[seat], random.Random(self.rng.random()))
            for seat in range(4)
        ]
        for ai in ais:
            ai.attach(manager)
        stats = _MatchStats()
        manager.add_listener(stats)

        state = manager.start_new_game(level=self.start_level)
        rounds = 0
        while True:
            rounds += 1
            self._play_round(manager, ais)
            state = manager.get_state()
            if state.phase == Phase.GAME_END or rounds >= self.max_rounds:
                break
            manager.start_next_round()

        winner_team = -1
        if state.phase == Phase.GAME_END:
            winner_team = state.players[state.round_winner].team

        return MatchResult(
            winner_team=winner_team,
            rounds=rounds,
            team_scores=state.team_scores,
            final_level=state.level,
            plays=stats.plays,
            passes=stats.passes,
            bombs=stats.bombs,
        )

    def _play_round(self, manager: GameStateManager, ais: List[AIPlayer]) -> None:
        for _ in range(self.max_turns_per_round):
            state = manager.get_state()
            if state.phase != Phase.PLAYING:
                return
            seat = state.current_player_index
            cards = ais[seat].decide(state)

            if cards is None:
                result = manager.pass_turn(seat)
            else:
                result = manager.play_cards(seat, cards)

            if not result.success:
                # AI 给出了非法的决策，退回最小的合法出牌
                logger.warning("Seat %d made an illegal move: %s", seat, result.error.value)
                legal = state.legal_plays()
                if state.last_play is not None:
                    manager.pass_turn(seat)
                elif legal:
                    manager.play_cards(seat, legal[0].cards)
                else:
                    raise RuntimeError(f"Seat {seat} has no legal lead")
        raise RuntimeError(f"Round did not finish within {self.max_turns_per_round} turns")

    def run(self, n_games: int) -> TournamentResult:
        """
        连续打多场

        Args:
            n_games: 比赛场数

        Returns:
            TournamentResult
        """
        result = TournamentResult()
        for i in range(n_games):
            match = self.play_match()
            result.matches.append(match)
            logger.info(
                "Game %d/%d: winner team %d, rounds %d, bombs %d",
                i + 1, n_games, match.winner_team, match.rounds, match.bombs,
            )
        return result


def compare_personalities(
    first: AIPersonality,
    second: AIPersonality,
    n_games: int = 10,
    config: Optional[AIConfig] = None,
    seed: Optional[int] = None,
    **arena_kwargs,
) -> Dict[str, float]:
    """
    两种性格对战 (0、2 号位用 first，1、3 号位用 second)

    Returns:
        {性格名: 胜率}
    """
    arena = Arena(
        config=config,
        personalities=[first, second, first, second],
        seed=seed,
        **arena_kwargs,
    )
    result = arena.run(n_games)
    team0, team1 = result.win_rates
    return {first.name: team0, second.name: team1}
