"""Main entry point for the keylaunch MCP server."""
import asyncio

from keylaunch.server import main


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
