"""
Tests for Ka Wu Xing tiles, melds and the wall
"""

import random

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kawuxing_mahjong.tiles import (
    Tile, TileSet, TileSuit, DragonType,
    dot, bam, dragon, sort_tiles, RED_DRAGON, GREEN_DRAGON, WHITE_DRAGON,
)
from kawuxing_mahjong.player import Meld, MeldType, PlayerState, Seat
from kawuxing_mahjong.wall import Wall, build_deck, shuffle_deck, deal_hands


class TestTiles:
    """Test tile system"""

    def test_tile_creation(self):
        """Test creating tiles"""
        t1 = dot(1)
        assert t1.suit == TileSuit.DOTS
        assert t1.value == 1

        t2 = bam(5)
        assert t2.suit == TileSuit.BAMBOOS
        assert t2.is_numbered

        red = dragon(DragonType.RED)
        assert red.is_honor
        assert not red.is_numbered

    def test_invalid_tiles(self):
        """Test invalid tiles are rejected"""
        with pytest.raises(ValueError):
            dot(10)
        with pytest.raises(ValueError):
            bam(0)
        with pytest.raises(ValueError):
            Tile(TileSuit.DRAGONS, 4)

    def test_tile_index(self):
        """Test tile indices"""
        assert dot(1).tile_index == 0
        assert dot(9).tile_index == 8
        assert bam(1).tile_index == 9
        assert bam(9).tile_index == 17
        assert RED_DRAGON.tile_index == 18
        assert WHITE_DRAGON.tile_index == 20

    def test_tile_from_index(self):
        """Test creating tiles from indices"""
        for idx in range(TileSet.NUM_TILE_TYPES):
            assert Tile.from_index(idx).tile_index == idx
        with pytest.raises(ValueError):
            Tile.from_index(21)

    def test_labels(self):
        """Test tile labels"""
        assert str(dot(5)) == "5筒"
        assert str(bam(5)) == "5条"
        assert str(RED_DRAGON) == "红中"
        assert str(GREEN_DRAGON) == "发财"
        assert str(WHITE_DRAGON) == "白板"

    def test_tile_from_string(self):
        """Test parsing tile labels"""
        assert Tile.from_string("5筒") == dot(5)
        assert Tile.from_string("9条") == bam(9)
        assert Tile.from_string("5p") == dot(5)
        assert Tile.from_string("3s") == bam(3)
        assert Tile.from_string("红中") == RED_DRAGON
        assert Tile.from_string("F") == GREEN_DRAGON
        assert Tile.from_string("P") == WHITE_DRAGON
        with pytest.raises(ValueError):
            Tile.from_string("5m")

    def test_equality_ignores_identity(self):
        """Test equality ignores the copy id"""
        a = dot(5, 16)
        b = dot(5, 17)
        assert a == b
        assert hash(a) == hash(b)
        assert not a.same_copy(b)
        assert a.same_copy(dot(5, 16))

    def test_canonical_order(self):
        """Test canonical sorting"""
        tiles = [WHITE_DRAGON, bam(1), dot(9), RED_DRAGON, dot(1)]
        assert sort_tiles(tiles) == [dot(1), dot(9), bam(1), RED_DRAGON, WHITE_DRAGON]


class TestTileSet:
    """Test tile set operations"""

    def test_create_full_set(self):
        """Test the full tile set"""
        full = TileSet.create_full_set()
        assert len(full) == 84
        assert sorted(t.id for t in full) == list(range(84))

    def test_four_copies_per_kind(self):
        """Test four copies of every kind"""
        counts = TileSet.create_full_set().to_count_array()
        assert counts.shape == (21,)
        assert np.all(counts == 4)

    def test_without_and_take(self):
        """Test removing tiles from a set"""
        ts = TileSet([dot(1, 0), dot(1, 1), dot(2, 4)])
        assert ts.count(dot(1)) == 2
        assert ts.without(dot(1), 2) == (dot(2, 4),)
        assert ts.without(dot(1), 3) is None
        assert [t.id for t in ts.take(dot(1), 2)] == [0, 1]

    def test_unique_tiles_in_canonical_order(self):
        """Test unique tiles in canonical order"""
        ts = TileSet([RED_DRAGON, bam(2), dot(3), bam(2)])
        assert ts.get_unique_tiles() == [dot(3), bam(2), RED_DRAGON]

    def test_contains_copy(self):
        """Test membership of a specific copy"""
        ts = TileSet([dot(1, 0)])
        assert ts.contains(dot(1, 3))
        assert not ts.contains_copy(dot(1, 3))
        assert ts.contains_copy(dot(1, 0))


class TestMeld:
    """Test meld validation"""

    def test_pong_creation(self):
        """Test creating a pong"""
        meld = Meld(MeldType.PONG, (dot(5, 16), dot(5, 17), dot(5, 18)), Seat.OPPONENT_1, dot(5, 18))
        assert meld.base_tile == dot(5)
        assert not meld.is_kong

    def test_invalid_pong(self):
        """Test an invalid pong is rejected"""
        with pytest.raises(ValueError):
            Meld(MeldType.PONG, (dot(5), dot(5), dot(6)))
        with pytest.raises(ValueError):
            Meld(MeldType.KONG, (dot(5), dot(5), dot(5)))

    def test_concealed_kong_has_no_source(self):
        """Test a concealed kong has no source seat"""
        tiles = tuple(bam(1, i) for i in range(36, 40))
        assert Meld(MeldType.CONCEALED_KONG, tiles).is_concealed
        with pytest.raises(ValueError):
            Meld(MeldType.CONCEALED_KONG, tiles, source_player=Seat.PLAYER)


class TestPlayerState:
    """Test per-seat helpers"""

    def test_owes_discard(self):
        """Test the owes-discard check"""
        player = PlayerState(Seat.PLAYER, "p", hand=tuple(dot(1) for _ in range(13)))
        assert not player.owes_discard
        player = player.with_hand(player.hand + (dot(2),))
        assert player.owes_discard

    def test_with_hand_sorts(self):
        """Test with_hand sorts the hand"""
        player = PlayerState(Seat.PLAYER, "p").with_hand([RED_DRAGON, bam(1), dot(9)])
        assert player.hand == (dot(9), bam(1), RED_DRAGON)

    def test_kong_options(self):
        """Test kong options"""
        pong = Meld(MeldType.PONG, (bam(3), bam(3), bam(3)), Seat.OPPONENT_1)
        hand = (dot(7), dot(7), dot(7), dot(7), bam(3))
        player = PlayerState(Seat.PLAYER, "p", hand=hand, melds=(pong,))
        assert player.can_concealed_kong() == [dot(7)]
        assert player.can_add_to_kong() == [bam(3)]
        assert player.can_kong(dot(7))
        assert player.can_pong(dot(7))
        assert not player.can_pong(bam(3))


class TestDeck:
    """Test deck construction, shuffling and dealing"""

    def test_build_deck(self):
        """Test building the deck"""
        deck = build_deck()
        assert len(deck) == 84
        assert deck[0] == dot(1)
        assert deck[-1] == WHITE_DRAGON

    def test_shuffle_is_permutation(self):
        """Test shuffling keeps every tile"""
        deck = build_deck()
        shuffled = shuffle_deck(deck, random.Random(7))
        assert sorted(t.id for t in shuffled) == list(range(84))
        assert [t.id for t in deck] == list(range(84))

    def test_shuffle_seeded(self):
        """Test seeded shuffling"""
        deck = build_deck()
        a = shuffle_deck(deck, random.Random(3))
        b = shuffle_deck(deck, random.Random(3))
        assert [t.id for t in a] == [t.id for t in b]

    def test_deal_leaves_45(self):
        """Test the deal leaves 45 tiles"""
        hands, remaining = deal_hands(build_deck(), 3, 13)
        assert [len(h) for h in hands] == [13, 13, 13]
        assert len(remaining) == 45
        assert [t.id for t in hands[1]] == list(range(13, 26))


class TestWall:
    """Test the immutable wall"""

    def test_draw_from_front(self):
        """Test normal draws come from the front"""
        wall = Wall.from_tiles(build_deck()[:5])
        tile, after = wall.draw()
        assert tile.id == 0
        assert after.remaining == 4
        assert after.dealt_count == 1
        assert wall.remaining == 5

    def test_replacement_from_back(self):
        """Test replacement draws come from the back"""
        wall = Wall.from_tiles(build_deck()[:5])
        tile, after = wall.draw_replacement()
        assert tile.id == 4
        assert after.remaining == 4
        assert after.replacement_count == 1

    def test_empty_wall(self):
        """Test an empty wall"""
        wall = Wall()
        assert wall.is_empty
        tile, after = wall.draw()
        assert tile is None
        assert after is wall
        tile, after = wall.draw_replacement()
        assert tile is None
