"""
游戏状态定义

使用不可变数据结构:
- 每次状态转换返回新的快照，未变化的元组直接共享
- AI 决策期间读取的状态不会被修改
- GameStateManager 是唯一的写入者
"""
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple
from enum import Enum
import logging
import random

from .cards import (
    Card,
    Rank,
    TrumpContext,
    NO_TRUMP,
    Deck,
    PLAIN_SUITS,
    CARDS_PER_PLAYER,
    PLAYER_COUNT,
    TOTAL_CARDS,
    sort_cards,
)
from .actions import Play, PlayGenerator
from .rules import RuleEngine, PlayError

logger = logging.getLogger(__name__)


class Phase(Enum):
    """游戏阶段"""
    WAITING = "waiting"        # 等待开始
    PLAYING = "playing"        # 出牌阶段
    ROUND_END = "round_end"    # 一局结束
    GAME_END = "game_end"      # 整场结束


class EventType(Enum):
    """状态变化事件"""
    DEAL = "deal"
    PLAY = "play"
    PASS = "pass"
    TRICK_RESET = "trick_reset"
    ROUND_END = "round_end"
    GAME_END = "game_end"


def teammate_index(index: int) -> int:
    """对家座位"""
    return (index + 2) % PLAYER_COUNT


def opponent_indices(index: int) -> Tuple[int, int]:
    """两个对手座位 (下家、上家)"""
    return (index + 1) % PLAYER_COUNT, (index + 3) % PLAYER_COUNT


def next_level(level: Rank) -> Rank:
    """
    升级: 从 2 直接升到 3，之后每次升一级，A 为最高级

    Args:
        level: 当前级牌

    Returns:
        下一级
    """
    if level == Rank.TWO:
        return Rank.THREE
    if level >= Rank.ACE:
        return Rank.ACE
    return Rank(level + 1)


@dataclass(frozen=True)
class Player:
    """
    玩家

    Attributes:
        id: 座位号 (0-3)
        name: 名字
        team: 队伍 (0/2 号位为 0 队，1/3 号位为 1 队)
        is_ai: 是否为 AI
        hand: 手牌
        personality: AI 性格标签
    """
    id: int
    name: str
    team: int
    is_ai: bool = False
    hand: Tuple[Card, ...] = ()
    personality: Optional[str] = None

    @property
    def card_count(self) -> int:
        return len(self.hand)


def default_players(ai_seats: Sequence[int] = (1, 2, 3)) -> Tuple[Player, ...]:
    """创建四名默认玩家"""
    names = ('南', '东', '北', '西')
    return tuple(
        Player(id=i, name=names[i], team=i % 2, is_ai=i in ai_seats)
        for i in range(PLAYER_COUNT)
    )


@dataclass(frozen=True)
class PlayRecord:
    """
    一次出牌或不要

    Attributes:
        player_index: 座位号
        play: 出牌 (None 表示不要)
    """
    player_index: int
    play: Optional[Play] = None

    @property
    def is_pass(self) -> bool:
        return self.play is None


@dataclass(frozen=True)
class GameState:
    """
    不可变游戏状态

    Attributes:
        phase: 游戏阶段
        players: 四名玩家 (含手牌)
        current_player_index: 当前行动玩家
        current_play: 最近一次行动打出的牌 (不要时为 None)
        last_play: 需要压过的牌 (None 表示主动出牌)
        last_play_player_index: 打出 last_play 的玩家，-1 表示无
        current_trick: 本轮出牌记录 (含不要)
        level: 当前级牌
        trump: 本局主牌信息
        team_scores: 两队得分
        play_history: 本局全部记录 (含不要)
        deck: 未发出的牌
        round_number: 第几局
        round_winner: 上一局最先出完的玩家，-1 表示无
        trick_winners: 本局每一轮的赢家
    """
    phase: Phase
    players: Tuple[Player, ...]
    current_player_index: int = 0
    current_play: Optional[Play] = None
    last_play: Optional[Play] = None
    last_play_player_index: int = -1
    current_trick: Tuple[PlayRecord, ...] = ()
    level: Rank = Rank.TWO
    trump: TrumpContext = NO_TRUMP
    team_scores: Tuple[int, int] = (0, 0)
    play_history: Tuple[PlayRecord, ...] = ()
    deck: Tuple[Card, ...] = ()
    round_number: int = 0
    round_winner: int = -1
    trick_winners: Tuple[int, ...] = ()

    @classmethod
    def initial(cls, players: Optional[Sequence[Player]] = None) -> 'GameState':
        """创建等待开始的状态"""
        players = tuple(players) if players is not None else default_players()
        if len(players) != PLAYER_COUNT:
            raise ValueError(f"Guandan needs {PLAYER_COUNT} players, got {len(players)}")
        return cls(phase=Phase.WAITING, players=players)

    def player(self, index: int) -> Player:
        if not 0 <= index < PLAYER_COUNT:
            raise IndexError(f"Invalid seat: {index}")
        return self.players[index]

    def hand(self, index: int) -> Tuple[Card, ...]:
        return self.player(index).hand

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @property
    def hand_sizes(self) -> Tuple[int, ...]:
        return tuple(len(p.hand) for p in self.players)

    @property
    def cards_played(self) -> int:
        """本局已打出的牌数"""
        return TOTAL_CARDS - sum(self.hand_sizes) - len(self.deck)

    @property
    def is_finished(self) -> bool:
        return self.phase == Phase.GAME_END

    def with_deal(self, rng: random.Random, starting_index: int = 0) -> 'GameState':
        """
        发牌开始新一局

        Args:
            rng: 随机数生成器
            starting_index: 先出牌的玩家

        Returns:
            出牌阶段的新状态
        """
        if self.phase == Phase.PLAYING:
            raise ValueError("Cannot deal while a round is being played")

        deck = Deck(rng)
        deck.shuffle()
        hands = [deck.deal(CARDS_PER_PLAYER) for _ in range(PLAYER_COUNT)]

        # 主花色: 先手玩家手中第一张级牌的花色，没有则随机
        trump_suit = next(
            (c.suit for c in hands[starting_index] if c.rank == self.level),
            None,
        )
        if trump_suit is None:
            trump_suit = rng.choice(PLAIN_SUITS)
        trump = TrumpContext(rank=self.level, suit=trump_suit)

        players = tuple(
            replace(p, hand=tuple(sort_cards(hands[i], trump)))
            for i, p in enumerate(self.players)
        )

        return replace(
            self,
            phase=Phase.PLAYING,
            players=players,
            current_player_index=starting_index,
            current_play=None,
            last_play=None,
            last_play_player_index=-1,
            current_trick=(),
            trump=trump,
            play_history=(),
            deck=tuple(deck.cards),
            round_number=self.round_number + 1,
            round_winner=-1,
            trick_winners=(),
        )

    def with_play(self, play: Play) -> 'GameState':
        """
        当前玩家出牌后的新状态 (调用方负责验证)

        Args:
            play: 出牌

        Returns:
            新状态
        """
        if self.phase != Phase.PLAYING:
            raise ValueError("Not in playing phase")

        index = self.current_player_index
        player = self.players[index]
        played_ids = {c.id for c in play.cards}
        new_hand = tuple(c for c in player.hand if c.id not in played_ids)
        if len(new_hand) != len(player.hand) - len(play.cards):
            raise ValueError("Play contains cards not in the current hand")

        players = list(self.players)
        players[index] = replace(player, hand=new_hand)
        record = PlayRecord(index, play)

        state = replace(
            self,
            players=tuple(players),
            current_play=play,
            last_play=play,
            last_play_player_index=index,
            current_trick=self.current_trick + (record,),
            play_history=self.play_history + (record,),
        )

        # 出完牌结束本局
        if not new_hand:
            return state._with_round_end(index)

        return state._advance()

    def with_pass(self) -> 'GameState':
        """当前玩家不要后的新状态"""
        if self.phase != Phase.PLAYING:
            raise ValueError("Not in playing phase")
        if self.last_play is None:
            raise ValueError("Cannot pass when leading")

        record = PlayRecord(self.current_player_index, None)
        state = replace(
            self,
            current_play=None,
            current_trick=self.current_trick + (record,),
            play_history=self.play_history + (record,),
        )
        return state._advance()

    def _advance(self) -> 'GameState':
        """轮到下家；转回最后出牌的玩家时本轮结束"""
        next_index = (self.current_player_index + 1) % PLAYER_COUNT
        if next_index == self.last_play_player_index:
            return replace(
                self,
                current_player_index=next_index,
                current_play=None,
                last_play=None,
                current_trick=(),
                trick_winners=self.trick_winners + (self.last_play_player_index,),
            )
        return replace(self, current_player_index=next_index)

    def _with_round_end(self, winner_index: int) -> 'GameState':
        """一局结束: 赢家所在队得一分，升级或结束整场"""
        team = self.players[winner_index].team
        scores = list(self.team_scores)
        scores[team] += 1

        # 打 A 赢一局即结束整场
        if self.level == Rank.ACE:
            phase = Phase.GAME_END
            level = self.level
        else:
            phase = Phase.ROUND_END
            level = next_level(self.level)

        return replace(
            self,
            phase=phase,
            level=level,
            team_scores=(scores[0], scores[1]),
            round_winner=winner_index,
            current_player_index=winner_index,
        )

    def legal_plays(self) -> List[Play]:
        """
        当前玩家的候选出牌 (不含不要)

        Returns:
            主动出牌时为全部牌型，跟牌时为能压过的牌
        """
        if self.phase != Phase.PLAYING:
            return []
        generator = PlayGenerator(self.current_player.hand, self.trump)
        if self.last_play is None:
            return generator.generate_all()
        return generator.generate_responses(self.last_play)


@dataclass(frozen=True)
class GameEvent:
    """
    状态变化通知

    Attributes:
        type: 事件类型
        state: 变化后的状态
        player_index: 相关玩家
        play: 相关出牌
    """
    type: EventType
    state: GameState
    player_index: int = -1
    play: Optional[Play] = None


@dataclass(frozen=True)
class ActionResult:
    """
    出牌/不要的结果

    Attributes:
        success: 是否成功
        error: 失败原因
        play: 成功时的出牌
    """
    success: bool
    error: Optional[PlayError] = None
    play: Optional[Play] = None


Listener = Callable[[GameEvent], None]


class GameStateManager:
    """
    游戏状态管理器

    唯一可以修改权威状态的对象。所有规则错误以 ActionResult
    返回，校验通过之前不会修改任何状态。
    """

    def __init__(
        self,
        players: Optional[Sequence[Player]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            players: 四名玩家，默认 0 号位为人类
            rng: 随机数生成器 (发牌与定主花色)
        """
        self.rng = rng or random.Random()
        self._state = GameState.initial(players)
        self._listeners: List[Listener] = []

    def get_state(self) -> GameState:
        return self._state

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: EventType, player_index: int = -1, play: Optional[Play] = None) -> None:
        event = GameEvent(event_type, self._state, player_index, play)
        for listener in list(self._listeners):
            listener(event)

    def start_new_game(self, level: Rank = Rank.TWO) -> GameState:
        """
        重置级牌和比分，发牌并进入出牌阶段

        Args:
            level: 起始级牌
        """
        base = replace(GameState.initial(self._state.players), level=level)
        self._state = base.with_deal(self.rng, starting_index=0)
        logger.info("New game started, level %s", self._state.level.name)
        self._emit(EventType.DEAL)
        return self._state

    def start_next_round(self) -> GameState:
        """
        开始下一局，上一局的赢家先出

        Raises:
            ValueError: 当前不是一局结束的阶段
        """
        if self._state.phase != Phase.ROUND_END:
            raise ValueError(f"Cannot start next round in phase {self._state.phase.value}")
        starting_index = max(self._state.round_winner, 0)
        self._state = self._state.with_deal(self.rng, starting_index=starting_index)
        logger.info(
            "Round %d started, level %s, trump suit %s",
            self._state.round_number, self._state.level.name, self._state.trump.suit.name,
        )
        self._emit(EventType.DEAL)
        return self._state

    def _check_turn(self, player_index: int) -> Optional[PlayError]:
        if self._state.phase != Phase.PLAYING:
            return PlayError.NOT_PLAYING
        if player_index != self._state.current_player_index:
            return PlayError.NOT_YOUR_TURN
        return None

    def play_cards(self, player_index: int, cards: Sequence[Card]) -> ActionResult:
        """
        出牌

        Args:
            player_index: 座位号
            cards: 要出的牌

        Returns:
            ActionResult
        """
        error = self._check_turn(player_index)
        if error is not None:
            return ActionResult(False, error=error)

        state = self._state
        result = RuleEngine.validate(state.hand(player_index), cards, state.last_play, state.trump)
        if not result.ok:
            return ActionResult(False, error=result.error)

        self._state = state.with_play(result.play)
        self._emit(EventType.PLAY, player_index, result.play)
        self._after_action(state)
        return ActionResult(True, play=result.play)

    def pass_turn(self, player_index: int) -> ActionResult:
        """
        不要

        Args:
            player_index: 座位号

        Returns:
            ActionResult
        """
        error = self._check_turn(player_index)
        if error is not None:
            return ActionResult(False, error=error)
        if self._state.last_play is None:
            return ActionResult(False, error=PlayError.NO_LEAD_TO_FOLLOW)

        previous = self._state
        self._state = previous.with_pass()
        self._emit(EventType.PASS, player_index)
        self._after_action(previous)
        return ActionResult(True)

    def _after_action(self, previous: GameState) -> None:
        """根据新状态发出一轮结束、一局结束、整场结束事件"""
        state = self._state
        if state.phase == Phase.PLAYING:
            if len(state.trick_winners) > len(previous.trick_winners):
                self._emit(EventType.TRICK_RESET, state.trick_winners[-1])
            return

        logger.info(
            "Round %d won by seat %d, scores %s",
            state.round_number, state.round_winner, state.team_scores,
        )
        self._emit(EventType.ROUND_END, state.round_winner)
        if state.phase == Phase.GAME_END:
            logger.info("Game over, team %d wins", state.players[state.round_winner].team)
            self._emit(EventType.GAME_END, state.round_winner)
