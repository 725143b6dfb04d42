"""Command-line gateway for playing the Pokémon game from a terminal."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List

from poke_trainer import CommandDispatcher, Reply, load_config


def _debug_print(enabled: bool, message: str) -> None:
    if enabled:
        sys.stderr.write(f"[debug] {message}\n")


def _print_replies(replies: List[Reply], *, as_json: bool) -> None:
    if as_json:
        json.dump([reply.to_dict() for reply in replies], sys.stdout, indent=2, ensure_ascii=False)
        sys.stdout.write("\n")
        return
    for reply in replies:
        print(reply.text)
        if reply.image:
            print(f"[image] {reply.image}")
        print()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Play the chat Pokémon game locally")
    parser.add_argument(
        "command",
        nargs="*",
        help="Command to send, e.g. '!catch pikachu'. Omit for an interactive session",
    )
    parser.add_argument(
        "--sender",
        default="local-player",
        help="Trainer id to act as (default: local-player)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit replies as JSON",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print debug progress information to stderr",
    )
    args = parser.parse_args(argv)

    config = load_config()
    logging.basicConfig(level=logging.DEBUG if args.debug else config.log_level)
    _debug_print(args.debug, f"Arguments parsed: {args}")
    _debug_print(args.debug, f"Data dir: {config.data_dir}, images: {config.temp_dir}")
    dispatcher = CommandDispatcher(config=config)

    if args.command:
        _print_replies(dispatcher.handle(args.sender, " ".join(args.command)), as_json=args.json)
        return 0

    print("Type commands (e.g. !help). Ctrl+D to quit.")
    for line in sys.stdin:
        text = line.strip()
        if not text:
            continue
        _debug_print(args.debug, f"Sending {text!r} as {args.sender}")
        _print_replies(dispatcher.handle(args.sender, text), as_json=args.json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
