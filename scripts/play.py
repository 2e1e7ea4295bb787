#!/usr/bin/env python3
"""
对战脚本

Usage:
    python scripts/play.py --mode watch               # 观看四个 AI 对战
    python scripts/play.py --mode play                # 与三个 AI 对战 (0 号位)
    python scripts/play.py --mode arena --games 20    # 批量对战统计胜率
"""
import argparse
import logging
import random
import sys
import time
from pathlib import Path
from typing import List

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core.cards import Rank, cards_to_str
from core.actions import Play
from core.state import GameStateManager, GameState, Phase, default_players
from ai import AIConfig, AIPlayer, get_personality
from evaluation import Arena

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Guandan Play")

    parser.add_argument(
        "--mode",
        type=str,
        default="watch",
        choices=["watch", "play", "arena"],
        help="Mode: watch AI, play against AI, or run an arena",
    )
    parser.add_argument(
        "--personality",
        type=str,
        default="balanced",
        choices=["aggressive", "conservative", "cooperative", "balanced"],
        help="AI personality",
    )
    parser.add_argument("--delay", type=float, default=0.5, help="Delay between moves")
    parser.add_argument("--games", type=int, default=1, help="Number of games")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--level", type=str, default="TWO", help="Starting level rank name")
    parser.add_argument("--no-mcts", action="store_true", help="Disable MCTS")

    return parser.parse_args()


def build_config(args) -> AIConfig:
    config = AIConfig(personality=args.personality)
    config.strategy.use_mcts = not args.no_mcts
    return config


def print_game_state(state: GameState, reveal: List[int]):
    """打印游戏状态"""
    print("\n" + "=" * 60)
    print(f"第 {state.round_number} 局  级牌: {state.level.name}  主花色: {state.trump.suit.name}"
          f"  比分: {state.team_scores[0]}:{state.team_scores[1]}")
    print("-" * 60)

    for player in state.players:
        marker = ">" if player.id == state.current_player_index else " "
        if player.id in reveal:
            print(f"{marker}[{player.name}] 手牌 ({len(player.hand)}): {cards_to_str(player.hand, state.trump)}")
        else:
            print(f"{marker} {player.name}  手牌数: {len(player.hand)}")

    if state.last_play is not None:
        print(f"\n需要压过: {state.players[state.last_play_player_index].name} "
              f"{state.last_play.name} {cards_to_str(state.last_play.cards, state.trump)}")

    print("=" * 60)


def play_to_str(play: Play) -> str:
    if play is None:
        return "不要"
    return f"{play.name} {cards_to_str(play.cards)}"


def run_rounds(manager: GameStateManager, ais: dict, human: int, args):
    """打到整场结束"""
    state = manager.start_new_game(level=Rank[args.level])
    while True:
        while state.phase == Phase.PLAYING:
            seat = state.current_player_index
            reveal = [human] if human >= 0 else list(range(4))
            print_game_state(state, reveal)

            if seat == human:
                play = choose_human_play(ais[human], state)
                if play is False:
                    print("退出游戏")
                    return
            else:
                play = ais[seat].decide_play(state.player(seat), state)
                time.sleep(args.delay)

            name = state.players[seat].name
            if play is None:
                manager.pass_turn(seat)
            else:
                manager.play_cards(seat, play.cards)
            print(f"\n{name}: {play_to_str(play)}")
            state = manager.get_state()

        winner = state.players[state.round_winner]
        print(f"\n本局结束! {winner.name} 先出完，{winner.team} 队得分")
        if state.phase == Phase.GAME_END:
            print("=" * 60)
            print(f"比赛结束! 胜者: {winner.team} 队  比分 {state.team_scores[0]}:{state.team_scores[1]}")
            print("=" * 60)
            return
        state = manager.start_next_round()


def choose_human_play(helper: AIPlayer, state: GameState):
    """列出候选出牌让玩家选择，返回 False 表示退出"""
    legal = state.legal_plays()
    can_pass = state.last_play is not None

    print("\n可选出牌:")
    if can_pass:
        print("  p: 不要")
    for i, play in enumerate(legal[:30]):  # 只显示前30个
        print(f"  {i}: {play_to_str(play)}")
    if len(legal) > 30:
        print(f"  ... 还有 {len(legal) - 30} 个")
    print("  h: 提示")

    while True:
        choice = input("\n请选择 (或输入 'q' 退出): ").strip().lower()
        if choice == 'q':
            return False
        if choice == 'p' and can_pass:
            return None
        if choice == 'h':
            hint = helper.get_hint(state.player(state.current_player_index), state)
            suggestion = "不要" if hint.pass_advised else cards_to_str(hint.cards)
            print(f"建议: {suggestion} ({hint.explanation.reason})")
            continue
        try:
            idx = int(choice)
        except ValueError:
            print("请输入数字")
            continue
        if 0 <= idx < len(legal):
            return legal[idx]
        print("无效选择，请重试")


def main():
    args = parse_args()
    config = build_config(args)

    print("=" * 60)
    print("掼蛋")
    print("=" * 60)

    if args.mode == "arena":
        arena = Arena(config=config, seed=args.seed, start_level=Rank[args.level])
        result = arena.run(args.games)
        print(result)
        return

    human = 0 if args.mode == "play" else -1
    rng = random.Random(args.seed)
    ai_seats = [i for i in range(4) if i != human]
    personality = get_personality(args.personality)

    for game_idx in range(args.games):
        print(f"\nGame {game_idx + 1}/{args.games}")
        manager = GameStateManager(players=default_players(ai_seats), rng=random.Random(rng.random()))
        ais = {}
        for seat in range(4):
            ais[seat] = AIPlayer(seat, config, personality, random.Random(rng.random()))
            ais[seat].attach(manager)
        run_rounds(manager, ais, human, args)


if __name__ == "__main__":
    main()
