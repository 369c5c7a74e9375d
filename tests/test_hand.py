"""
Tests for Ka Wu Xing winning-hand detection
"""

import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kawuxing_mahjong.tiles import DragonType, TileSet, dot, bam, dragon
from kawuxing_mahjong.player import Meld, MeldType, Seat
from kawuxing_mahjong.hand import (
    is_winning_hand, is_winning_counts, can_win_with, waiting_tiles, is_tenpai,
)

C = dragon(DragonType.RED)
F = dragon(DragonType.GREEN)
P = dragon(DragonType.WHITE)


class TestWinningHand:
    """Test the pair + four groups search"""

    def test_all_pongs(self):
        """Test four pongs and a pair"""
        hand = [dot(1)] * 3 + [dot(5)] * 3 + [bam(9)] * 3 + [C] * 3 + [F] * 2
        assert is_winning_hand(hand)

    def test_chows_and_pair(self):
        """Test four chows and a pair"""
        hand = [dot(1), dot(2), dot(3), dot(4), dot(5), dot(6),
                bam(7), bam(8), bam(9), bam(2), bam(3), bam(4), P, P]
        assert is_winning_hand(hand)

    def test_needs_backtracking(self):
        """Test a hand that needs backtracking"""
        # 111222333p reads as three pongs or three chows
        hand = [dot(1)] * 3 + [dot(2)] * 3 + [dot(3)] * 3 + [bam(5), bam(6), bam(7), C, C]
        assert is_winning_hand(hand)

    def test_pair_choice_matters(self):
        """Test choosing the right pair"""
        # 1123p: only 11 as the pair works
        hand = [dot(1), dot(1), dot(2), dot(3)] + [bam(4)] * 3 + [bam(6)] * 3 + [F] * 3 + [P]
        assert not is_winning_hand(hand)
        hand = [dot(1), dot(1), dot(1), dot(2), dot(3)] + [bam(4)] * 3 + [bam(6)] * 3 + [F] * 3
        assert is_winning_hand(hand)

    def test_thirteen_tiles_is_not_a_win(self):
        """Test a short hand"""
        hand = [dot(1)] * 3 + [dot(5)] * 3 + [bam(9)] * 3 + [C] * 3 + [F]
        assert not is_winning_hand(hand)

    def test_fifteen_tiles_is_not_a_win(self):
        """Test a long hand"""
        hand = [dot(1)] * 3 + [dot(5)] * 3 + [bam(9)] * 3 + [C] * 3 + [F] * 3
        assert not is_winning_hand(hand)

    def test_dragons_never_form_runs(self):
        """Test dragons do not form chows"""
        hand = [C, F, P, dot(1), dot(2), dot(3), dot(4), dot(5), dot(6),
                dot(7), dot(8), dot(9), bam(5), bam(5)]
        assert not is_winning_hand(hand)

    def test_runs_do_not_cross_suits(self):
        """Test chows stay in one suit"""
        # 8p 9p 1s are adjacent kind indices but not a run
        hand = [dot(8), dot(9), bam(1), dot(1), dot(2), dot(3), dot(4), dot(5), dot(6),
                C, C, C, P, P]
        assert not is_winning_hand(hand)
        hand = [dot(9), bam(1), bam(2), dot(1), dot(2), dot(3), dot(4), dot(5), dot(6),
                C, C, C, P, P]
        assert not is_winning_hand(hand)

    def test_win_with_melds(self):
        """Test a win with a declared pong"""
        pong = Meld(MeldType.PONG, (bam(5), bam(5), bam(5)), Seat.OPPONENT_1)
        hand = [dot(1), dot(2), dot(3), dot(4), dot(5), dot(6), bam(7), bam(8), bam(9), C, C]
        assert is_winning_hand(hand, [pong])
        assert not is_winning_hand(hand)

    def test_win_with_kong(self):
        """Test a win with a declared kong"""
        kong = Meld(MeldType.CONCEALED_KONG, (F, F, F, F))
        hand = [dot(1), dot(2), dot(3), dot(4), dot(5), dot(6), bam(7), bam(8), bam(9), C, C]
        assert is_winning_hand(hand, [kong])

    def test_count_array_form(self):
        """Test the count-array entry point"""
        counts = np.zeros(TileSet.NUM_TILE_TYPES, dtype=np.int8)
        counts[C.tile_index] = 2
        assert is_winning_counts(counts)
        counts[dot(1).tile_index] = 1
        assert not is_winning_counts(counts)


class TestWaitingTiles:
    """Test the one-tile-short search"""

    def test_single_wait(self):
        """Test a single waiting tile"""
        hand = [dot(4), dot(6), bam(1), bam(2), bam(3), bam(7), bam(8), bam(9),
                dot(2), dot(2), dot(2), dot(8), dot(8)]
        assert waiting_tiles(hand) == [dot(5)]
        assert can_win_with(hand, (), dot(5))
        assert not can_win_with(hand, (), dot(3))

    def test_two_sided_wait(self):
        """Test a two-sided wait"""
        hand = [dot(1), dot(2), dot(3), dot(4), bam(5), bam(5), bam(5),
                bam(7), bam(8), bam(9), C, C, C]
        assert waiting_tiles(hand) == [dot(1), dot(4)]
        assert is_tenpai(hand)

    def test_exhausted_kind_is_not_a_wait(self):
        """Test a kind with no copies left is not a wait"""
        pong = Meld(MeldType.PONG, (bam(5), bam(5), bam(5)), Seat.OPPONENT_2)
        hand = [bam(5), dot(1), dot(2), dot(3), dot(4), dot(5), dot(6), dot(7), dot(8), dot(9)]
        assert waiting_tiles(hand, [pong]) == []
        assert not is_tenpai(hand, [pong])

    def test_wrong_size_has_no_waits(self):
        """Test no waits for a wrong-sized hand"""
        assert waiting_tiles([dot(1), dot(1)]) == []
