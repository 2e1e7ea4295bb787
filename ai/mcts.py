"""
蒙特卡洛树搜索

在限定时间和迭代次数内对当前局面做前瞻，用于残局等关键决策。
搜索在轻量的模拟状态上进行，节点保存在列表中并用下标互相引用。
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple
import logging
import math
import random
import time

from core.cards import Card, TrumpContext, NO_TRUMP, PLAYER_COUNT, CARDS_PER_PLAYER
from core.actions import Play, PlayGenerator
from core.state import GameState, teammate_index

from .config import MCTSConfig
from .hand_evaluator import HandEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimState:
    """
    模拟用的轻量状态

    Attributes:
        hands: 四家手牌
        current: 当前行动座位
        last_play: 需要压过的牌
        last_player: 打出 last_play 的座位，-1 表示无
        trump: 主牌信息
    """
    hands: Tuple[Tuple[Card, ...], ...]
    current: int
    last_play: Optional[Play] = None
    last_player: int = -1
    trump: TrumpContext = NO_TRUMP

    @classmethod
    def from_game_state(cls, state: GameState) -> 'SimState':
        return cls(
            hands=tuple(p.hand for p in state.players),
            current=state.current_player_index,
            last_play=state.last_play,
            last_player=state.last_play_player_index,
            trump=state.trump,
        )

    @property
    def is_terminal(self) -> bool:
        return any(not hand for hand in self.hands)

    def legal_plays(self) -> List[Play]:
        generator = PlayGenerator(self.hands[self.current], self.trump)
        if self.last_play is None:
            return generator.generate_all()
        return generator.generate_responses(self.last_play)

    def with_play(self, play: Play, reset_trick: bool = False) -> 'SimState':
        """出牌: 移除手牌并轮到下家"""
        played_ids = {c.id for c in play.cards}
        hands = list(self.hands)
        hands[self.current] = tuple(c for c in hands[self.current] if c.id not in played_ids)
        state = replace(
            self,
            hands=tuple(hands),
            last_play=play,
            last_player=self.current,
        )
        return state._advance(reset_trick)

    def with_pass(self, reset_trick: bool = False) -> 'SimState':
        return self._advance(reset_trick)

    def _advance(self, reset_trick: bool) -> 'SimState':
        next_index = (self.current + 1) % PLAYER_COUNT
        if reset_trick and next_index == self.last_player:
            return replace(self, current=next_index, last_play=None, last_player=-1)
        return replace(self, current=next_index)


@dataclass
class MCTSNode:
    """
    搜索树节点

    Attributes:
        state: 节点对应的模拟状态
        parent: 父节点下标，根节点为 -1
        play: 到达该节点的出牌
        children: 子节点下标
        untried: 还没展开的出牌
        visits: 访问次数
        wins: 累计收益
    """
    state: SimState
    parent: int = -1
    play: Optional[Play] = None
    children: List[int] = field(default_factory=list)
    untried: List[Play] = field(default_factory=list)
    visits: int = 0
    wins: float = 0.0


class MCTSEngine:
    """
    蒙特卡洛树搜索引擎

    回溯时所有祖先节点都按根玩家所在队伍的收益累加，
    即把四家当作合作求解，而不是对抗的极小极大。
    """

    def __init__(self, config: Optional[MCTSConfig] = None, rng: Optional[random.Random] = None):
        """
        Args:
            config: MCTS 配置
            rng: 随机数生成器 (展开顺序、模拟和发牌推测)
        """
        self.config = config or MCTSConfig()
        self.rng = rng or random.Random()
        self.nodes: List[MCTSNode] = []
        self.last_iterations = 0

    def time_limit_for(self, hand_size: int) -> float:
        """手牌越多搜索时间越长"""
        if not self.config.scale_by_hand:
            return self.config.time_limit_ms
        fraction = min(max(hand_size / CARDS_PER_PLAYER, 0.0), 1.0)
        return self.config.min_time_ms + (self.config.max_time_ms - self.config.min_time_ms) * fraction

    def _determinize(self, sim: SimState, root: int) -> SimState:
        """把其他三家的牌重新随机分配 (保持张数)，避免看到别人的手牌"""
        others = [i for i in range(PLAYER_COUNT) if i != root]
        pool = [c for i in others for c in sim.hands[i]]
        self.rng.shuffle(pool)
        hands = list(sim.hands)
        offset = 0
        for i in others:
            size = len(sim.hands[i])
            hands[i] = tuple(pool[offset:offset + size])
            offset += size
        return replace(sim, hands=tuple(hands))

    def _new_node(self, state: SimState, parent: int, play: Optional[Play]) -> int:
        untried = [] if state.is_terminal else state.legal_plays()
        self.rng.shuffle(untried)
        self.nodes.append(MCTSNode(state=state, parent=parent, play=play, untried=untried))
        return len(self.nodes) - 1

    def search(
        self,
        state: GameState,
        time_limit_ms: Optional[float] = None,
        determinize: bool = True,
    ) -> Optional[Play]:
        """
        搜索当前玩家的最佳出牌

        Args:
            state: 状态快照
            time_limit_ms: 搜索时间，默认按手牌数计算
            determinize: 是否随机重新分配其他人的手牌

        Returns:
            访问次数最多的出牌，没有可出的牌时返回 None
        """
        root_seat = state.current_player_index
        if time_limit_ms is None:
            time_limit_ms = self.time_limit_for(len(state.hand(root_seat)))

        sim = SimState.from_game_state(state)
        if determinize:
            sim = self._determinize(sim, root_seat)

        self.nodes = []
        self._new_node(sim, -1, None)
        deadline = time.perf_counter() + time_limit_ms / 1000.0

        iterations = 0
        while iterations < self.config.max_iterations and time.perf_counter() < deadline:
            # 1. 选择
            node_index = self._select(0)
            # 2. 展开
            node_index = self._expand(node_index)
            # 3. 模拟
            result = self._simulate(self.nodes[node_index].state, root_seat)
            # 4. 回溯
            self._backpropagate(node_index, result)
            iterations += 1

        self.last_iterations = iterations
        root = self.nodes[0]
        if not root.children:
            return None

        best = max(root.children, key=lambda i: self.nodes[i].visits)
        logger.debug(
            "MCTS finished %d iterations, %d root children, best visits %d",
            iterations, len(root.children), self.nodes[best].visits,
        )
        return self.nodes[best].play

    def ucb1(self, node_index: int, parent_visits: int) -> float:
        node = self.nodes[node_index]
        if node.visits == 0:
            return math.inf
        exploitation = node.wins / node.visits
        exploration = self.config.exploration * math.sqrt(math.log(parent_visits) / node.visits)
        return exploitation + exploration

    def _select(self, node_index: int) -> int:
        depth = 0
        node = self.nodes[node_index]
        while not node.untried and node.children and depth < self.config.max_depth:
            node_index = max(node.children, key=lambda i: self.ucb1(i, node.visits))
            node = self.nodes[node_index]
            depth += 1
        return node_index

    def _expand(self, node_index: int) -> int:
        node = self.nodes[node_index]
        if not node.untried:
            return node_index
        play = node.untried.pop()
        child = self._new_node(node.state.with_play(play), node_index, play)
        self.nodes[node_index].children.append(child)
        return child

    def _simulate(self, sim: SimState, root_seat: int) -> float:
        """
        启发式模拟

        跟牌时出最小的能压过的牌 (没有就不要)，主动出牌时随机选一手
        """
        for _ in range(self.config.rollout_depth):
            if sim.is_terminal:
                break
            plays = sim.legal_plays()
            if sim.last_play is None:
                sim = sim.with_play(self.rng.choice(plays), reset_trick=True)
            elif plays:
                sim = sim.with_play(plays[0], reset_trick=True)
            else:
                sim = sim.with_pass(reset_trick=True)
        return self.evaluate(sim, root_seat)

    @staticmethod
    def evaluate(sim: SimState, root_seat: int) -> float:
        """
        从根玩家所在队伍的角度评估状态

        Returns:
            己方出完为 1，对方出完为 0，否则为双方手牌分的占比
        """
        mate = teammate_index(root_seat)
        own_team = (root_seat, mate)
        opponents = [i for i in range(PLAYER_COUNT) if i not in own_team]

        if any(not sim.hands[i] for i in own_team):
            return 1.0
        if any(not sim.hands[i] for i in opponents):
            return 0.0

        own_score = sum(HandEvaluator.evaluate(sim.hands[i], sim.trump).total_score for i in own_team)
        opp_score = sum(HandEvaluator.evaluate(sim.hands[i], sim.trump).total_score for i in opponents)
        total = own_score + opp_score
        if total <= 0:
            return 0.5
        return own_score / total

    def _backpropagate(self, node_index: int, result: float) -> None:
        while node_index != -1:
            node = self.nodes[node_index]
            node.visits += 1
            node.wins += result
            node_index = node.parent
