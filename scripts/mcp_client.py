"""Send chat commands to the poke-trainer FastMCP server over HTTP.

Usage:
    python scripts/mcp_client.py --url http://localhost:3333/mcp --sender ash "!catch pikachu"
    python scripts/mcp_client.py --list
"""
from __future__ import annotations

import argparse
import asyncio
import json
from collections.abc import Mapping, Sequence
from typing import Any

from fastmcp import Client


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument(
        "--url",
        default="http://localhost:3333/mcp",
        help="Base MCP endpoint exposed by the FastMCP server",
    )
    parser.add_argument(
        "--sender",
        default="mcp-player",
        help="Trainer id the commands are sent as",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List available tools instead of sending a command",
    )
    parser.add_argument(
        "text",
        nargs="*",
        help="Chat command to send, e.g. '!gym pewter city'",
    )
    return parser


def _coerce(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return {k: _coerce(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_coerce(item) for item in value]
    for attr in ("model_dump", "dict"):
        method = getattr(value, attr, None)
        if callable(method):
            try:
                return _coerce(method())
            except TypeError:
                continue
    return str(value)


async def _main_async() -> None:
    args = _build_parser().parse_args()

    async with Client(args.url) as client:
        await client.ping()
        if args.list or not args.text:
            for tool in await client.list_tools():
                print(f"- {getattr(tool, 'name', tool)}: {getattr(tool, 'description', '')}")
            return

        result = await client.call_tool("send_command", {"sender": args.sender, "text": " ".join(args.text)})
        print(json.dumps(_coerce(result), indent=2, ensure_ascii=False))


def main() -> None:
    asyncio.run(_main_async())


if __name__ == "__main__":
    main()
