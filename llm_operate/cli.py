"""CLI entry point for llm-operate."""

import argparse
import asyncio
import json
import sys
from typing import Optional

from .api.client import LlmClient
from .errors import OperateError
from .models.streaming import StreamChunkType


async def run_operate(model: Optional[str], prompt: str, system: Optional[str] = None,
                      turns: Optional[int] = None, stream: bool = False) -> int:
    """Run one conversation and print the result."""
    client = LlmClient(model=model)
    options = {}
    if system:
        options["system"] = system
    if turns is not None:
        options["turns"] = turns

    try:
        if stream:
            print(f"Streaming response from {client.model}:\n")
            async for chunk in client.stream(prompt, **options):
                if chunk.type == StreamChunkType.TEXT:
                    print(chunk.content, end="", flush=True)
                elif chunk.type == StreamChunkType.ERROR:
                    print(f"\nError: {chunk.error.title}: {chunk.error.detail}", file=sys.stderr)
                elif chunk.type == StreamChunkType.DONE:
                    print()
                    print(f"\nUsage: {json.dumps([u.model_dump() for u in chunk.usage])}")
        else:
            result = await client.operate(prompt, **options)
            print(f"Response from {client.model}:\n")
            content = result.content
            print(content if isinstance(content, str) else json.dumps(content, indent=2))
            if result.error:
                print(f"\nError: {result.error.title}: {result.error.detail}", file=sys.stderr)
            print(f"\nUsage: {json.dumps([u.model_dump() for u in result.usage])}")
    except OperateError as e:
        print(f"Error: {e.title}: {e.detail}", file=sys.stderr)
        return 1
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="llm-operate CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    operate_parser = subparsers.add_parser("operate", help="Run a conversation with an LLM")
    operate_parser.add_argument("model", help='Model or provider name (e.g., "gpt-4.1", "anthropic")')
    operate_parser.add_argument("prompt", help="Text prompt")
    operate_parser.add_argument("--system", help="System prompt")
    operate_parser.add_argument("--turns", type=int, help="Maximum number of turns")
    operate_parser.add_argument("--stream", action="store_true", help="Stream the response")

    args = parser.parse_args()

    if args.command == "operate":
        sys.exit(asyncio.run(run_operate(args.model, args.prompt, args.system, args.turns, args.stream)))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
