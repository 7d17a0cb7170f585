"""MCP server exposing the launcher engine as tools."""
import json
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from keylaunch.config import get_config, load_config_file
from keylaunch.desktop import load_applications
from keylaunch.engine import LauncherEngine
from keylaunch.executor import Executor
from keylaunch.recent import load_recent


# Global state
_engine: Optional[LauncherEngine] = None
_executor: Optional[Executor] = None


def create_engine() -> LauncherEngine:
    """Build an engine from the environment, the TOML config and the app index."""
    config, tables = load_config_file(get_config().config_path)

    try:
        apps = load_applications(cache_path=config.app_cache_path)
    except OSError as e:
        print(f"[Server] Could not load applications: {e}", file=sys.stderr)
        apps = []

    engine = LauncherEngine(
        config=config,
        apps=apps,
        recent=load_recent(config.recent_path, config.max_recent),
        themes=tables.themes,
        shortcuts=tables.shortcuts,
        power_actions=tables.power_actions,
        theme_name=tables.theme_name,
    )
    engine.build_actions()
    return engine


def get_engine() -> LauncherEngine:
    """Get or create the global engine instance."""
    global _engine

    if _engine is None:
        _engine = create_engine()

    return _engine


def get_executor() -> Executor:
    """Get or create the global executor, wired back to the engine."""
    global _executor

    if _executor is None:
        engine = get_engine()
        _executor = Executor(
            terminal=engine.config.terminal,
            on_app_launched=engine.record_launch,
            on_theme_selected=engine.apply_theme,
        )

    return _executor


def _json(data: Any) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False))]


async def health_check_tool() -> list[TextContent]:
    """Report engine status."""
    engine = get_engine()
    return _json({
        "status": "ok",
        "applications": len(engine.apps),
        "recent": len(engine.recent),
        "shortcuts": len(engine.shortcuts),
        "power_actions": len(engine.power_actions),
        "themes": len(engine.themes),
    })


async def query_launcher_tool(text: str) -> list[TextContent]:
    """Tool handler for query_launcher.

    Args:
        text: Raw launcher input, including any command prefix

    Returns:
        List of TextContent with rows, selection and scroll offset
    """
    engine = get_engine()
    engine.set_input(text)
    # Tool callers send whole queries, not keystrokes, so no debounce wait
    engine.settle()
    return _json(engine.snapshot())


async def activate_result_tool(text: str, index: int) -> list[TextContent]:
    """Tool handler for activate_result.

    Args:
        text: Raw launcher input the index refers to
        index: Row index to activate

    Returns:
        List of TextContent with the execution outcome
    """
    engine = get_engine()
    if engine.input_text != text or not engine.rows:
        await query_launcher_tool(text)

    activation = engine.activate(index)
    if activation is None:
        return _json({"ok": False, "message": f"Nothing to activate at index {index}"})

    result = get_executor().execute(activation)
    return _json({
        "ok": result.ok,
        "message": result.message,
        "kind": activation.kind.value,
        "payload": activation.payload,
        "exit_launcher": result.exit_launcher,
    })


async def list_recent_apps_tool() -> list[TextContent]:
    return _json(get_engine().recent.items())


def create_server() -> Server:
    """Create and configure the MCP server.

    Returns:
        Configured Server instance
    """
    server = Server("keylaunch")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="health_check",
                description="Report launcher status: number of applications, recent entries, shortcuts, power actions and themes.",
                inputSchema={"type": "object", "properties": {}},
            ),
            Tool(
                name="query_launcher",
                description=(
                    "Interpret launcher input and return ranked results with highlight spans. "
                    "Prefixes: ':s' file search, ':c' config files, ':t' themes, ':r' or '!' run a command, "
                    "the power prefix (default ':p') for system actions, and any configured shortcut. "
                    "Anything else searches applications."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "input": {
                            "type": "string",
                            "description": "Raw launcher input, e.g. 'fire', ':s notes', '!htop'"
                        }
                    },
                    "required": ["input"]
                }
            ),
            Tool(
                name="activate_result",
                description="Activate a result row (launch an app, open a file or URL, run a command, apply a theme).",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "input": {
                            "type": "string",
                            "description": "Launcher input the row belongs to"
                        },
                        "index": {
                            "type": "integer",
                            "description": "Row index from query_launcher",
                            "minimum": 0
                        }
                    },
                    "required": ["input", "index"]
                }
            ),
            Tool(
                name="list_recent_apps",
                description="List recently launched applications, most recent first.",
                inputSchema={"type": "object", "properties": {}},
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}
        if name == "health_check":
            return await health_check_tool()
        elif name == "query_launcher":
            return await query_launcher_tool(arguments.get("input", ""))
        elif name == "activate_result":
            if "index" not in arguments:
                return [TextContent(
                    type="text",
                    text="Error: 'index' parameter is required"
                )]
            return await activate_result_tool(arguments.get("input", ""), int(arguments["index"]))
        elif name == "list_recent_apps":
            return await list_recent_apps_tool()
        else:
            raise ValueError(f"Unknown tool: {name}")

    return server


async def main():
    """Main entry point for the MCP server."""
    server = create_server()

    async with stdio_server() as (read_stream, write_stream):
        initialization_options = server.create_initialization_options()
        await server.run(read_stream, write_stream, initialization_options)
