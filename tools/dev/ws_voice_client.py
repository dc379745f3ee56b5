#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Yovo — Dev WebSocket Voice Client (/ws/voice)
---------------------------------------------
Console stand-in for the browser voice front-end.

- Typed lines are sent as `speech` events (as if recognized from the mic).
- `/topic <name>` sends a `change-topic` event, e.g. `/topic career-path`.
- `/ping` checks the connection, `/quit` exits.
- Reconnects with backoff when the connection drops. A new connection is a
  new session on the server: history and topic start over.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict

import websockets
from websockets.exceptions import ConnectionClosed

DEFAULT_SERVER = "ws://127.0.0.1:3000/ws/voice"

TOPICS = (
    "interest-discovery",
    "major-exploration",
    "career-path",
    "college-recommendations",
    "session-closure",
)


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Yovo — Dev WebSocket Voice Client (/ws/voice)",
    )
    parser.add_argument(
        "--server",
        type=str,
        default=DEFAULT_SERVER,
        help=f"WebSocket server URL (default: {DEFAULT_SERVER})",
    )
    parser.add_argument(
        "--max-backoff",
        type=int,
        default=30,
        help="Upper bound in seconds for the reconnect delay (default: 30).",
    )
    return parser.parse_args()


# ---------------------------------------------------------------------------
# Frame helpers
# ---------------------------------------------------------------------------


def build_frame(line: str) -> Dict[str, Any]:
    """Turn one console line into an event frame."""
    if line.startswith("/topic"):
        topic = line[len("/topic"):].strip()
        return {"type": "change-topic", "payload": {"topic": topic}}
    if line == "/ping":
        return {"type": "ping", "payload": {}}
    return {"type": "speech", "payload": {"text": line}}


def show_frame(data: Dict[str, Any]) -> bool:
    """
    Print one server frame. Returns True when it ends the current exchange
    (a reply, an error or a pong).
    """
    kind = data.get("type")
    payload = data.get("payload") or {}

    if kind == "processingStart":
        print("  (thinking...)")
        return False
    if kind == "connected":
        print(f"[client] connection id: {payload.get('connectionId')}")
        return False
    if kind == "llmResponse":
        state = payload.get("sessionState") or {}
        print(f"\nYovo: {payload.get('text')}")
        print(
            f"  topic = {state.get('currentTopic')}, "
            f"session = {state.get('sessionDuration')}s\n"
        )
        return True
    if kind == "error":
        print(f"Server error: {payload.get('message')}\n")
        return True
    if kind == "pong":
        print("  pong\n")
        return True

    print(f"Unknown frame: {data}")
    return False


# ---------------------------------------------------------------------------
# Core loop (for one connection)
# ---------------------------------------------------------------------------


async def run_single_session(args: argparse.Namespace) -> None:
    print("Type what you would say and press Enter.")
    print(f"Commands: /topic <{'|'.join(TOPICS)}>, /ping, /quit\n")

    async with websockets.connect(args.server, ping_interval=None, ping_timeout=None) as ws:
        print(f"Connected to {args.server}.\n")

        while True:
            try:
                line = input("You: ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\nBye.")
                raise KeyboardInterrupt

            if not line:
                continue
            if line.lower() in {"/quit", "/exit"}:
                print("Bye.")
                raise KeyboardInterrupt

            await ws.send(json.dumps(build_frame(line)))

            # Read until the exchange is finished
            while True:
                raw = await ws.recv()
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    print(f"Raw response (not JSON): {raw}")
                    break
                if show_frame(data):
                    break


# ---------------------------------------------------------------------------
# Auto-reconnect wrapper
# ---------------------------------------------------------------------------


async def run_with_reconnect(args: argparse.Namespace) -> None:
    """Backoff: 3s, 6s, 9s, ... capped at --max-backoff. Ctrl+C to exit."""
    attempt = 0
    base_delay = 3

    while True:
        attempt += 1
        try:
            print(f"Connecting to '{args.server}' (attempt {attempt}) ...")
            await run_single_session(args)
            return
        except KeyboardInterrupt:
            return
        except ConnectionClosed as exc:
            print(f"\nConnection closed: {exc}")
        except OSError as exc:
            print(f"\nConnection error: {exc}")

        delay = min(base_delay * attempt, args.max_backoff)
        print(f"Reconnecting in {delay} seconds... (a new session will start)")
        await asyncio.sleep(delay)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    args = parse_args()
    try:
        asyncio.run(run_with_reconnect(args))
    except KeyboardInterrupt:
        print("\nBye.")
        sys.exit(0)


if __name__ == "__main__":
    main()
