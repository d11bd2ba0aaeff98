from __future__ import annotations

import argparse
from pathlib import Path

from whirlbird.ui.cli import commands
from whirlbird.storage.registry import available_stores


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Whirlbird")
    subparsers = parser.add_subparsers(dest="command", required=True)

    store_parent = argparse.ArgumentParser(add_help=False)
    store_parent.add_argument("--store", choices=available_stores(), default=None)

    sub = subparsers.add_parser("serve", parents=[store_parent], help="Run the score API")
    sub.add_argument("--host", default=None)
    sub.add_argument("--port", type=int, default=None)
    sub.set_defaults(func=commands.cmd_serve)

    sub = subparsers.add_parser("simulate", help="Run headless autopilot sessions")
    sub.add_argument("--runs", type=int, default=10)
    sub.add_argument("--seed", type=int, default=None)
    sub.add_argument("--seconds", type=float, default=120.0)
    sub.add_argument("--save", action="store_true", help="Write summary to the default results file")
    sub.add_argument("--out", type=Path, default=None)
    sub.add_argument("--report", action="store_true", help="Submit each finished run to the score API")
    sub.add_argument("--api-url", default=None)
    sub.add_argument("--post", default="local", help="Post id sent with reported scores")
    sub.add_argument("--user", default=None)
    sub.set_defaults(func=commands.cmd_simulate)

    sub = subparsers.add_parser("leaderboard", parents=[store_parent], help="Print the top scores")
    sub.add_argument("--size", type=int, default=None)
    sub.set_defaults(func=commands.cmd_leaderboard)

    sub = subparsers.add_parser("doctor", parents=[store_parent], help="Check environment/dependencies")
    sub.set_defaults(func=commands.cmd_doctor)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
