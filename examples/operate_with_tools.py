"""
Example: Tool Calling, Hooks and Streaming

This example runs a small weather assistant through both entry points:
``operate`` for a finished result and ``stream`` for incremental output.
"""

import asyncio
import random

from llm_operate import LlmClient, LlmHooks, LlmTool, StreamChunkType, Toolkit


def get_weather(city: str):
    """Pretend weather lookup."""
    return {"city": city, "forecast": random.choice(["sunny", "cloudy", "rain"]), "high_c": random.randint(12, 30)}


toolkit = Toolkit([
    LlmTool(
        name="get_weather",
        description="Get today's forecast for a city",
        parameters={
            "type": "object",
            "properties": {"city": {"type": "string", "description": "City name"}},
            "required": ["city"],
        },
        call=get_weather,
    )
])


async def example_operate_with_tools():
    """Run a conversation to completion, logging each tool call."""
    print("=== Operate with Tools ===\n")

    client = LlmClient(model="gpt-4.1-mini")
    hooks = LlmHooks(
        before_each_tool=lambda ctx: print(f"-> {ctx.tool_name}({ctx.args})"),
        after_each_tool=lambda ctx: print(f"<- {ctx.result}"),
    )

    result = await client.operate(
        "Should I bring an umbrella in {{ city }} today?",
        data={"city": "Lisbon"},
        system="You are a concise travel assistant.",
        tools=toolkit,
        hooks=hooks,
    )

    print(f"\nAnswer: {result.content}")
    print(f"Status: {result.status.value}")
    if result.error:
        print(f"Error: {result.error.title}: {result.error.detail}")
    print(f"Turns used: {len(result.responses)}")
    print(f"Total tokens: {sum(u.total for u in result.usage)}")


async def example_stream_with_tools():
    """Stream a conversation; tool results arrive between text chunks."""
    print("\n=== Streaming with Tools ===\n")

    client = LlmClient(model="claude-sonnet-4-0")

    async for chunk in client.stream("Compare the weather in Oslo and Rome.", tools=toolkit, turns=4):
        if chunk.type == StreamChunkType.TEXT:
            print(chunk.content, end="", flush=True)
        elif chunk.type == StreamChunkType.TOOL_RESULT:
            print(f"\n[{chunk.tool_result.name}] {chunk.tool_result.result}")
        elif chunk.type == StreamChunkType.ERROR:
            print(f"\n[error] {chunk.error.title}: {chunk.error.detail}")
        elif chunk.type == StreamChunkType.DONE:
            print(f"\n\nTokens: {sum(u.total for u in chunk.usage)}")


async def main():
    """Run all examples."""
    examples = [
        example_operate_with_tools,
        example_stream_with_tools,
    ]

    for example in examples:
        await example()
        print("\n" + "="*50 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
