"""测试公共夹具"""
from dataclasses import replace

import pytest

from core.cards import Rank, Suit, TrumpContext, create_deck, str_to_cards, sort_cards
from core.actions import Play
from core.state import GameState, Phase, default_players


@pytest.fixture
def make_state():
    """
    用字符串描述的四家手牌构造出牌阶段的状态

    四家的牌一起解析，重复的牌自动取第 2 副
    """
    def _make(hands, current=0, last_play=None, last_player=-1,
              level=Rank.TWO, trump_suit=Suit.HEART, ai_seats=(1, 2, 3)):
        trump = TrumpContext(rank=level, suit=trump_suit)
        sizes = [len(h.split()) for h in hands]
        parsed = str_to_cards(' '.join(hands))
        players = []
        offset = 0
        for player, size in zip(default_players(ai_seats), sizes):
            hand = tuple(sort_cards(parsed[offset:offset + size], trump))
            players.append(replace(player, hand=hand))
            offset += size
        lead = None
        if last_play is not None:
            lead = Play.from_cards(str_to_cards(last_play), trump)
        return GameState(
            phase=Phase.PLAYING,
            players=tuple(players),
            current_player_index=current,
            last_play=lead,
            last_play_player_index=last_player,
            level=level,
            trump=trump,
            round_number=1,
        )
    return _make


@pytest.fixture
def ordered_state():
    """
    不洗牌直接按顺序发牌的状态 (级牌 2，主花色红桃)

    0 号位: 第 1 副的黑桃、红桃全部和方块 2
    1 号位: 第 1 副其余的方块、梅花和两张王
    2、3 号位: 第 2 副，分法相同
    """
    trump = TrumpContext(rank=Rank.TWO, suit=Suit.HEART)
    deck = create_deck()
    players = tuple(
        replace(p, hand=tuple(sort_cards(deck[i * 27:(i + 1) * 27], trump)))
        for i, p in enumerate(default_players())
    )
    return GameState(
        phase=Phase.PLAYING,
        players=players,
        level=Rank.TWO,
        trump=trump,
        round_number=1,
    )
