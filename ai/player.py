"""
AI 玩家

持有一个座位的记牌器、概率分析器和策略引擎，监听状态管理器的事件，
并提供异步出牌入口和出牌提示。
"""
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple
import asyncio
import logging
import random

from core.cards import Card, CARDS_PER_PLAYER
from core.actions import Play
from core.state import GameState, GameEvent, GameStateManager, EventType, Player

from .config import AIConfig
from .personality import AIPersonality, get_personality, calculate_thinking_time
from .card_tracker import CardTracker
from .probability import ProbabilityAnalyzer
from .mcts import MCTSEngine
from .strategy import StrategyEngine
from .explainer import DecisionExplainer, DecisionReason

logger = logging.getLogger(__name__)

PlayCallback = Callable[[int, List[Card]], Any]
PassCallback = Callable[[int], Any]


@dataclass(frozen=True)
class Hint:
    """
    出牌提示

    Attributes:
        cards: 建议出的牌 (建议不要时为空)
        pass_advised: 是否建议不要
        explanation: 原因
    """
    cards: Tuple[Card, ...]
    pass_advised: bool
    explanation: DecisionReason


class AIPlayer:
    """
    AI 玩家

    决策本身是同步的 (decide)，思考延迟只在 make_move 中处理
    """

    def __init__(
        self,
        seat_index: int,
        config: Optional[AIConfig] = None,
        personality: Optional[AIPersonality] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            seat_index: 座位号
            config: AI 配置
            personality: 性格，默认取 config.personality
            rng: 随机数生成器
        """
        self.seat_index = seat_index
        self.config = config or AIConfig()
        self.personality = personality or get_personality(self.config.personality)
        self.rng = rng or random.Random()

        self.tracker = CardTracker(seat_index)
        self.analyzer = ProbabilityAnalyzer(self.tracker)
        self.strategy = StrategyEngine(
            self.config.strategy,
            MCTSEngine(self.config.mcts, self.rng),
            self.rng,
        )
        self.explainer = DecisionExplainer(self.analyzer)

        self._round_number: Optional[int] = None
        self._lead: Optional[Play] = None

    def attach(self, manager: GameStateManager) -> None:
        """注册到状态管理器，接收出牌事件"""
        manager.add_listener(self.on_event)

    def on_event(self, event: GameEvent) -> None:
        if event.type == EventType.DEAL:
            self._reset(event.state)
        elif event.type == EventType.PLAY:
            if self._sync(event.state):
                self._lead = event.play
                return
            self.tracker.observe_play(event.player_index, event.play.cards)
            self._lead = event.play
        elif event.type == EventType.PASS:
            if self._sync(event.state):
                return
            self.tracker.observe_pass(event.player_index, self._lead)
        elif event.type == EventType.TRICK_RESET:
            self._lead = None

    def _reset(self, state: GameState) -> None:
        self.tracker.reset(state)
        self._round_number = state.round_number
        self._lead = state.last_play

    def _sync(self, state: GameState) -> bool:
        """
        没有收到发牌事件时 (如中途加入)，从快照重建记牌器

        Returns:
            是否重建了记牌器 (快照中已包含触发事件的这次行动)
        """
        if self._round_number != state.round_number:
            self._reset(state)
            return True
        return False

    def decide(self, state: GameState) -> Optional[Tuple[Card, ...]]:
        """
        为自己的座位做决策

        Returns:
            要出的牌，None 表示不要
        """
        play = self.decide_play(state.player(self.seat_index), state)
        return play.cards if play is not None else None

    def _tools_for(self, player: Player, state: GameState) -> Tuple[CardTracker, ProbabilityAnalyzer]:
        """本座位且记牌器已同步时用自己的，否则从快照建一个临时的"""
        if player.id == self.seat_index and self._round_number == state.round_number:
            return self.tracker, self.analyzer
        tracker = CardTracker(player.id)
        tracker.reset(state)
        return tracker, ProbabilityAnalyzer(tracker)

    def decide_play(self, player: Player, state: GameState) -> Optional[Play]:
        """为任意座位做决策"""
        if player.id == self.seat_index:
            self._sync(state)
        tracker, analyzer = self._tools_for(player, state)
        return self.strategy.decide_play(player, state, analyzer, tracker, self.personality)

    def thinking_delay(self, complexity: float = 0.5) -> float:
        """
        思考延迟 (秒)

        在配置范围内随机取基础时间，按性格和复杂度缩放，结果仍限制在配置范围内

        Args:
            complexity: 决策复杂度 0-1
        """
        low, high = self.config.thinking_delay
        base = self.rng.uniform(low, high)
        delay = calculate_thinking_time(self.personality, complexity, base_time=base)
        return min(max(delay, low), high)

    async def make_move(
        self,
        player: Player,
        state: GameState,
        on_play: PlayCallback,
        on_pass: PassCallback,
        delay: Optional[float] = None,
    ) -> Any:
        """
        等待思考延迟后出牌或不要，只调用一个回调

        Args:
            player: 行动的玩家
            state: 状态快照
            on_play: 出牌回调 (座位号, 牌)
            on_pass: 不要回调 (座位号)
            delay: 延迟秒数，默认在配置范围内随机

        Returns:
            回调的返回值
        """
        if delay is None:
            delay = self.thinking_delay(len(player.hand) / CARDS_PER_PLAYER)
        await asyncio.sleep(delay)

        play = self.decide_play(player, state)
        if play is None:
            logger.debug("Seat %d passes", player.id)
            return on_pass(player.id)
        logger.debug("Seat %d plays %s", player.id, play.name)
        return on_play(player.id, list(play.cards))

    def get_hint(self, player: Player, state: GameState) -> Hint:
        """
        给出出牌建议，不修改任何状态

        Args:
            player: 需要提示的玩家
            state: 状态快照

        Returns:
            Hint
        """
        tracker, analyzer = self._tools_for(player, state)
        play = self.strategy.decide_play(player, state, analyzer, tracker, self.personality)
        explainer = self.explainer if analyzer is self.analyzer else DecisionExplainer(analyzer)
        explanation = explainer.explain(play, player, state)
        if play is None:
            return Hint(cards=(), pass_advised=True, explanation=explanation)
        return Hint(cards=play.cards, pass_advised=False, explanation=explanation)
