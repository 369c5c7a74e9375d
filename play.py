#!/usr/bin/env python3
"""
Play a hand of Ka Wu Xing against two bots in the terminal.

Usage:
    python play.py
    python play.py --seed 7 --rules reference
"""

import sys
import time
import logging
import argparse
from pathlib import Path
from typing import Dict, List, Optional

sys.path.insert(0, str(Path(__file__).parent))

from kawuxing_mahjong.claims import ActionType
from kawuxing_mahjong.rules import get_rules
from kawuxing_mahjong.game import (
    Action, GamePhase, GameState, WinType, new_game, run_bots, step, valid_actions,
)
from kawuxing_mahjong.hand import waiting_tiles
from kawuxing_mahjong.report import build_discard_report, request_commentary

logger = logging.getLogger(__name__)

ACTION_NAMES = {
    ActionType.DRAW: "摸牌",
    ActionType.DISCARD: "打",
    ActionType.PONG: "碰",
    ActionType.KONG: "杠",
    ActionType.CONCEALED_KONG: "暗杠",
    ActionType.ADD_KONG: "加杠",
    ActionType.HU: "胡",
    ActionType.PASS: "过",
}


def local_coach(payload: Dict) -> str:
    """Rule-of-thumb commentary on a discard report payload."""
    if payload["gap_five_before"] and not payload["gap_five_after"]:
        return "[评分: F] 拆了卡五星的4/6，没有梦想。"
    if payload["same_kind_in_hand"] >= 3:
        return "[评分: F] 刻子都拆，做慈善。"
    if payload["same_kind_in_hand"] == 2:
        return "[评分: C] 拆对子，碰牌的本钱都不要了。"
    if payload["elapsed_ms"] > 8000:
        return "[评分: B] 牌没打错，但想这么久，黄花菜都凉了。"
    return "[评分: A] 打得中规中矩。"


def describe(action: Action) -> str:
    name = ACTION_NAMES[action.action_type]
    if action.tile is not None and action.action_type != ActionType.DRAW:
        return f"{name} {action.tile}"
    return name


def render(state: GameState, seat) -> None:
    print()
    print(f"=== 第 {state.round_num} 巡 · 牌墙剩余 {state.wall.remaining} ===")
    for p in state.players:
        melds = " ".join(str(m) for m in p.melds) or "-"
        discards = " ".join(str(t) for t in p.discards) or "-"
        print(f"{p.name:>10} | 副露: {melds} | 弃牌: {discards}")
    player = state.players[seat]
    hand = player.sorted_hand()
    print()
    print("手牌: " + "  ".join(f"[{i}]{t}" for i, t in enumerate(hand)))
    if player.last_drawn is not None:
        print(f"刚摸: {player.last_drawn}")
    if not player.owes_discard:
        waits = waiting_tiles(player.hand, player.melds)
        if waits:
            print("听牌: " + " ".join(str(t) for t in waits))


def prompt(text: str) -> Optional[str]:
    """Read a line, None on quit or end of input."""
    try:
        answer = input(text).strip()
    except EOFError:
        return None
    if answer.lower() in ("q", "quit"):
        return None
    return answer


def choose_discard(state: GameState, seat, options: List[Action]) -> Optional[Action]:
    """Discard by hand position, or `k<n>` for the n-th kong option."""
    hand = state.players[seat].sorted_hand()
    kongs = [a for a in options if a.action_type in (ActionType.CONCEALED_KONG, ActionType.ADD_KONG)]
    for i, action in enumerate(kongs):
        print(f"  k{i}: {describe(action)}")

    while True:
        answer = prompt("打哪张? (序号, k<序号> 开杠, q 退出): ")
        if answer is None:
            return None
        if answer.startswith("k") and answer[1:].isdigit() and int(answer[1:]) < len(kongs):
            return kongs[int(answer[1:])]
        if answer.isdigit() and int(answer) < len(hand):
            return Action(ActionType.DISCARD, seat, hand[int(answer)])
        print("无效输入")


def choose_option(options: List[Action]) -> Optional[Action]:
    for i, action in enumerate(options):
        print(f"  [{i}] {describe(action)}")
    while True:
        answer = prompt("选择: ")
        if answer is None:
            return None
        if answer.isdigit() and int(answer) < len(options):
            return options[int(answer)]
        print("无效输入")


def announce_result(state: GameState, seat) -> None:
    print()
    print("=" * 40)
    if state.winner is None:
        print("流局，牌墙摸完了。")
    else:
        winner = state.players[state.winner]
        how = "自摸" if state.win_type == WinType.SELF_DRAWN else "点炮"
        tiles = " ".join(str(t) for t in state.winning_hand or ())
        print(f"{winner.name} 胡了 ({how}): {tiles}")
        print("你赢了！" if state.winner == seat else "这把输了。")
    print("=" * 40)


def play(seed: Optional[int] = None, rules_name: str = "default", coach: bool = True) -> GameState:
    """Run one interactive hand and return the final state."""
    rules = get_rules(rules_name)
    seat = rules.human_seat
    if seat is None:
        raise ValueError(f"Rules '{rules_name}' have no human seat")

    state = new_game(rules, seed=seed)
    logger.info(f"New hand, seed={seed}, rules={rules.name}")

    while True:
        state = run_bots(state)
        if state.is_finished:
            break

        options = valid_actions(state, seat)
        if not options:
            logger.error(f"No legal action for {seat.name} in {state.phase.name}")
            break

        render(state, seat)
        started = time.monotonic()

        if state.phase == GamePhase.DRAWING:
            if prompt("回车摸牌 (q 退出): ") is None:
                return state
            action = options[0]
        elif state.phase == GamePhase.DISCARDING:
            action = choose_discard(state, seat, options)
        else:
            print(f"{state.players[state.pending.discarder].name} 打出 {state.pending.tile}")
            action = choose_option(options)

        if action is None:
            return state

        before = state
        state = step(state, action)
        if state is before:
            print("这步不合规则，再来。")
            continue

        report = build_discard_report(before, state, seat, int((time.monotonic() - started) * 1000))
        if report is not None:
            print()
            print(request_commentary(report, local_coach if coach else None))

    announce_result(state, seat)
    return state


def main():
    parser = argparse.ArgumentParser(description="Play Ka Wu Xing Mahjong against two bots")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--rules", type=str, default="default", choices=["default", "reference"])
    parser.add_argument("--no-coach", action="store_true", help="Skip discard commentary")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level), format="[%(levelname)s] %(name)s: %(message)s")

    play(seed=args.seed, rules_name=args.rules, coach=not args.no_coach)


if __name__ == "__main__":
    main()
