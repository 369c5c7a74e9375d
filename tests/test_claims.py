"""
Tests for claim resolution after a discard
"""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from kawuxing_mahjong.tiles import DragonType, dot, bam, dragon
from kawuxing_mahjong.player import PlayerState, Seat
from kawuxing_mahjong.rules import ClaimOrder
from kawuxing_mahjong.claims import ActionType, claim_scan_order, find_claim, qualifies

C = dragon(DragonType.RED)
F = dragon(DragonType.GREEN)
P = dragon(DragonType.WHITE)

# Waits on 5p: 4p 6p | 123s | 789s | 222p | 88p
WAITS_5P_EDGE = (dot(4), dot(6), bam(1), bam(2), bam(3), bam(7), bam(8), bam(9),
                 dot(2), dot(2), dot(2), dot(8), dot(8))
# Waits on 5p as the pair: 456s | CCC | FFF | PPP | 5p
WAITS_5P_PAIR = (dot(5), bam(4), bam(5), bam(6), C, C, C, F, F, F, P, P, P)
FILLER = (dot(1), dot(3), dot(7), dot(9), bam(1), bam(3), bam(5), bam(7), bam(9), C, F, P, dot(6))


def seat(s: Seat, hand) -> PlayerState:
    return PlayerState(s, s.name).with_hand(hand)


class TestScanOrder:
    """Test which seats are checked, in which order"""

    def test_turn_order(self):
        """Test scanning from the seat after the discarder"""
        assert claim_scan_order(Seat.OPPONENT_1) == [Seat.OPPONENT_2, Seat.PLAYER]
        assert claim_scan_order(Seat.OPPONENT_2) == [Seat.PLAYER, Seat.OPPONENT_1]
        assert claim_scan_order(Seat.PLAYER) == [Seat.OPPONENT_1, Seat.OPPONENT_2]

    def test_seat_index(self):
        """Test the fixed seat-index scan"""
        assert claim_scan_order(Seat.OPPONENT_2, ClaimOrder.SEAT_INDEX) == [Seat.OPPONENT_1, Seat.PLAYER]


class TestFindClaim:
    """Test priority and uniqueness of the offered claim"""

    def test_nobody_can_claim(self):
        """Test no offer when no seat qualifies"""
        players = (seat(Seat.OPPONENT_1, FILLER), seat(Seat.OPPONENT_2, FILLER), seat(Seat.PLAYER, FILLER))
        assert find_claim(players, Seat.OPPONENT_1, dot(5)) is None

    def test_pong_offer(self):
        """Test offering a pong"""
        players = (
            seat(Seat.OPPONENT_1, FILLER),
            seat(Seat.OPPONENT_2, FILLER),
            seat(Seat.PLAYER, (dot(5), dot(5)) + FILLER[:11]),
        )
        pending = find_claim(players, Seat.OPPONENT_1, dot(5))
        assert pending.seat == Seat.PLAYER
        assert pending.options == (ActionType.PONG, ActionType.PASS)
        assert pending.discarder == Seat.OPPONENT_1
        assert pending.best == ActionType.PONG

    def test_win_beats_pong(self):
        """Test a win outranks an earlier pong"""
        # OPPONENT_2 is scanned first and could pong, PLAYER can win
        players = (
            seat(Seat.OPPONENT_1, FILLER),
            seat(Seat.OPPONENT_2, (dot(5), dot(5)) + FILLER[:11]),
            seat(Seat.PLAYER, WAITS_5P_EDGE),
        )
        pending = find_claim(players, Seat.OPPONENT_1, dot(5))
        assert pending.seat == Seat.PLAYER
        assert pending.options == (ActionType.HU, ActionType.PASS)

    def test_kong_offer(self):
        """Test offering a kong"""
        players = (
            seat(Seat.OPPONENT_1, FILLER),
            seat(Seat.OPPONENT_2, (dot(5), dot(5), dot(5)) + FILLER[:10]),
            seat(Seat.PLAYER, FILLER),
        )
        pending = find_claim(players, Seat.OPPONENT_1, dot(5))
        assert pending.seat == Seat.OPPONENT_2
        assert pending.options == (ActionType.KONG, ActionType.PASS)

    def test_kong_becomes_pong_without_replacement(self):
        """Test a kong offer drops to pong when kongs are not allowed"""
        players = (
            seat(Seat.OPPONENT_1, FILLER),
            seat(Seat.OPPONENT_2, (dot(5), dot(5), dot(5)) + FILLER[:10]),
            seat(Seat.PLAYER, FILLER),
        )
        pending = find_claim(players, Seat.OPPONENT_1, dot(5), allow_kong=False)
        assert pending.options == (ActionType.PONG, ActionType.PASS)

    @pytest.mark.parametrize("order,expected", [
        (ClaimOrder.TURN_ORDER, Seat.PLAYER),
        (ClaimOrder.SEAT_INDEX, Seat.OPPONENT_1),
    ])
    def test_two_winners_follow_scan_order(self, order, expected):
        """Test the first winner in scan order gets the offer"""
        players = (
            seat(Seat.OPPONENT_1, WAITS_5P_EDGE),
            seat(Seat.OPPONENT_2, FILLER),
            seat(Seat.PLAYER, WAITS_5P_PAIR),
        )
        pending = find_claim(players, Seat.OPPONENT_2, dot(5), order)
        assert pending.seat == expected
        assert pending.best == ActionType.HU

    def test_qualifies_rejects_non_claims(self):
        """Test qualifies only accepts claim actions"""
        with pytest.raises(ValueError):
            qualifies(seat(Seat.PLAYER, FILLER), dot(5), ActionType.DISCARD)
