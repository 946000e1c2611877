"""MCP server exposing deployment tasks as tools."""
import asyncio
import json
from functools import partial
from pathlib import Path
from typing import Any, Dict, List

import anyio
import mcp.types as types
from mcp.server import stdio
from mcp.server.lowlevel import Server
from mcp.server.models import InitializationOptions

from venv_deploy.config import load_settings
from venv_deploy.errors import DeployError, log_error
from venv_deploy.logging import configure_logging, get_logger
from venv_deploy.tasks import DESCRIPTIONS, WORKFLOWS, run_task
from venv_deploy.transport import LocalTransport

logger = get_logger("server")

SERVER_NAME = "venv-deploy"
TOOL_PREFIX = "virtualenv_"

TASK_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "release_path": {"type": "string", "description": "Directory of the release being deployed"},
        "shared_path": {"type": "string", "description": "Directory shared between releases"},
        "current_path": {"type": "string", "description": "Directory of the active release"},
        "config_file": {"type": "string", "description": "Optional TOML config file"},
    },
    "required": ["release_path", "shared_path", "current_path"],
}

tools = [
    types.Tool(
        name=f"{TOOL_PREFIX}{name}",
        description=DESCRIPTIONS.get(name, name),
        inputSchema=TASK_INPUT_SCHEMA,
    )
    for name in WORKFLOWS
]


def _result(payload: Dict[str, Any]) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(payload))]


def run_tool(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Run the task behind a tool; blocking."""
    task = name[len(TOOL_PREFIX):] if name.startswith(TOOL_PREFIX) else name
    config_file = arguments.get("config_file")
    settings = load_settings(
        arguments["release_path"],
        arguments["shared_path"],
        arguments["current_path"],
        config_file=Path(config_file) if config_file else None,
    )
    run_task(task, settings, LocalTransport())
    return {
        "task": task,
        "shared": str(settings.shared),
        "release": str(settings.release),
    }


def init_server() -> Server:
    logger.info({"event": "tools_registered", "tools": [t.name for t in tools]})

    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        logger.debug({"event": "tools_requested"})
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
        logger.debug({"event": "tool_call", "tool": name, "arguments": arguments})

        if name not in {t.name for t in tools}:
            return _result({"success": False, "error": f"Unknown tool: {name}"})

        try:
            data = await anyio.to_thread.run_sync(partial(run_tool, name, arguments))
        except DeployError as e:
            log_error(e, {"tool": name})
            return _result({"success": False, "error": str(e), "details": e.details})
        except KeyError as e:
            return _result({"success": False, "error": f"Missing argument: {e.args[0]}"})

        return _result({"success": True, "data": data})

    return server


async def serve() -> None:
    configure_logging()
    logger.info({"event": "server_starting", "name": SERVER_NAME})
    server = init_server()
    async with stdio.stdio_server() as (read_stream, write_stream):
        init_options = InitializationOptions(
            server_name=SERVER_NAME,
            server_version="0.1.0",
            capabilities=types.ServerCapabilities(
                tools=types.ToolsCapability(listChanged=False),
                logging=types.LoggingCapability(),
            ),
        )
        await server.run(read_stream, write_stream, init_options)


def main() -> None:
    """Run the MCP server."""
    asyncio.run(serve())
