"""Deep Research - command line runner.

Streams the research process and final report to stdout in the plain-text
wire format (reasoning wrapped in think markers).
"""

import argparse
import asyncio
import sys

from deep_research.agents.orchestrator import ResearchOrchestrator
from deep_research.config import settings
from deep_research.models.research import ResearchParams
from deep_research.services.multiplexer import EventSink, get_encoder, multiplex


async def run_research(
    query: str,
    breadth: int | None = None,
    depth: int | None = None,
    model: str | None = None,
    stream_format: str = "text",
):
    """Run research on the given query and print the stream as it arrives."""
    params = ResearchParams(
        topic=query,
        breadth=settings.clamp_breadth(breadth),
        depth=settings.clamp_depth(depth),
    )
    orchestrator = ResearchOrchestrator(model=model)

    async def producer(sink: EventSink) -> None:
        await orchestrator.run(params, sink)

    async for chunk in multiplex(producer, get_encoder(stream_format)):
        if isinstance(chunk, dict):
            print(f"event: {chunk['event']}\ndata: {chunk['data']}\n", flush=True)
        else:
            sys.stdout.write(chunk)
            sys.stdout.flush()
    print()


def main():
    parser = argparse.ArgumentParser(description="Deep Research streaming research tool")
    parser.add_argument("--query", "-q", required=True, help="Research question")
    parser.add_argument("--breadth", "-b", type=int, help="Queries per planning step")
    parser.add_argument("--depth", "-d", type=int, help="Recursive research levels")
    parser.add_argument("--model", "-m", help="Model to use (default: from config)")
    parser.add_argument(
        "--format", "-f", choices=["text", "sse"], default="text", help="Output wire format"
    )

    args = parser.parse_args()

    try:
        asyncio.run(run_research(args.query, args.breadth, args.depth, args.model, args.format))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
