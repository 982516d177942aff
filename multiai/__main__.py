"""Terminal entry point.

Usage examples:
    # Chat with one provider
    python -m multiai --participants openai

    # Ask two providers at once, with memory on
    python -m multiai --participants openai anthropic --memory

    # Let three providers discuss a topic for six turns
    python -m multiai --participants openai anthropic gemini --dialogue "AI ethics" --rounds 6
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from multiai.app import AppContext
from multiai.config import settings
from multiai.errors import MultiAIError
from multiai.persistence import create_store

if TYPE_CHECKING:
    from multiai.conversation.models import Message

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=settings.log_level.upper(),
)
logger = logging.getLogger(__name__)


def _print_message(ctx: AppContext, message: Message) -> None:
    name = ctx.registry.display_name(message.sender)
    extra = f" [{message.used_memories} memories]" if message.memory_enhanced else ""
    print(f"\n{name.upper()}{extra}: {message.content}")


async def _chat(ctx: AppContext, args: argparse.Namespace) -> None:
    conversation = ctx.conversations.create(args.participants, args.type)
    print(f"{conversation.title} with {', '.join(args.participants)}. Empty line to quit.")
    while True:
        text = await asyncio.to_thread(input, "\n> ")
        if not text.strip():
            break
        result = await ctx.send_message(conversation, text)
        for message in result.messages:
            _print_message(ctx, message)


async def _dialogue(ctx: AppContext, args: argparse.Namespace) -> None:
    conversation = ctx.conversations.create(args.participants, args.type)
    result = await ctx.start_dialogue(conversation, args.dialogue, max_rounds=args.rounds)
    for message in conversation.messages:
        if message.sender == "moderator" or message in result.messages:
            _print_message(ctx, message)


async def _run(args: argparse.Namespace) -> int:
    ctx = AppContext(persistence=create_store(settings))
    await ctx.load()
    if args.memory is not None:
        ctx.update_memory_config(enabled=args.memory)
    try:
        if args.dialogue:
            await _dialogue(ctx, args)
        else:
            await _chat(ctx, args)
    except MultiAIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        await ctx.save()
    return 0


def main() -> None:
    """Parse arguments and run a chat or dialogue session."""
    parser = argparse.ArgumentParser(description="Talk to several LLM providers at once")
    parser.add_argument(
        "--participants", nargs="+", default=["openai"], help="Participant ids, in turn order"
    )
    parser.add_argument(
        "--type",
        choices=["single", "bilateral", "multilateral"],
        default=None,
        help="Conversation type (default: inferred from participant count)",
    )
    parser.add_argument("--dialogue", metavar="TOPIC", help="Run an AI-to-AI dialogue on TOPIC")
    parser.add_argument("--rounds", type=int, default=None, help="Dialogue rounds")
    parser.add_argument(
        "--memory", action=argparse.BooleanOptionalAction, default=None, help="Toggle memory"
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
