"""MCP Server — exposes the quiz catalogue to MCP clients."""

from __future__ import annotations

import argparse
import logging

from mcp.server.fastmcp import FastMCP

from quizdeck.quiz_store import QuizStore
from quizdeck.tools import quizzes

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

mcp = FastMCP("quizdeck")
store = QuizStore()

quizzes.register(mcp, store)

# CLI flag -> FastMCP transport name
NETWORK_TRANSPORTS = {"sse": "sse", "http": "streamable-http"}


def parse_transport(argv: list[str] | None = None) -> tuple[str, int | None, bool]:
    """Read the transport choice from the command line.

    Returns (transport, port, verbose); port is None for stdio.
    """
    parser = argparse.ArgumentParser(description="Quizdeck MCP Server")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--sse", type=int, metavar="PORT", help="Serve over SSE on PORT")
    group.add_argument(
        "--http", type=int, metavar="PORT", help="Serve over Streamable HTTP on PORT"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    for flag, transport in NETWORK_TRANSPORTS.items():
        port = getattr(args, flag)
        if port:
            return transport, port, args.verbose
    return "stdio", None, args.verbose


def serve(transport: str, port: int | None) -> None:
    if port is not None:
        mcp.settings.host = "0.0.0.0"
        mcp.settings.port = port
    logger.info("Starting Quizdeck MCP server (transport: %s)...", transport)
    mcp.run(transport=transport)


def main(argv: list[str] | None = None):
    """Run the MCP server."""
    transport, port, verbose = parse_transport(argv)
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    serve(transport, port)


if __name__ == "__main__":
    main()
