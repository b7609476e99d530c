"""FastMCP server bootstrap for the WakaTime agent."""

import asyncio
import json
import logging
from typing import Optional

from fastmcp import FastMCP

from . import __version__
from .agent import WakaTimeAgent
from .config import AgentSettings, get_settings
from .tools import register_tools


def configure_logging(level: str) -> None:
    """Configure root logging for the agent."""

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


def _run_sync(coro):
    """Execute an async coroutine on a dedicated event loop."""

    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def create_server(
    settings: Optional[AgentSettings] = None,
    agent: WakaTimeAgent | None = None,
) -> FastMCP:
    """Instantiate the FastMCP server once wakatime-cli has been checked."""

    settings = settings or get_settings()
    agent = agent or WakaTimeAgent(settings)

    activation = {
        "tool_state": None,
        "error": None,
    }
    try:
        state = _run_sync(agent.activate())
        activation["tool_state"] = state.value if state else None
    except Exception as exc:  # pragma: no cover - activation already logs its failures
        activation["error"] = str(exc)
        logging.getLogger(__name__).exception("Agent activation failed")

    server = FastMCP(
        name="WakaTime Agent",
        instructions=(
            "Tracks coding activity with WakaTime. Call send_heartbeat whenever a "
            "file is edited, selected or saved; the agent throttles and forwards "
            "heartbeats to wakatime-cli."
        ),
    )

    handles = register_tools(server, agent=agent)

    async def status_resource() -> str:
        """Return a JSON string summarizing agent and wakatime-cli state."""

        payload = await agent.status()
        payload["activation"] = activation
        payload["server_version"] = __version__
        return json.dumps(payload)

    server.resource(
        "resource://wakatime/status",
        name="wakatime_status",
        description="Current state of the WakaTime agent and its wakatime-cli install.",
        mime_type="application/json",
    )(status_resource)

    setattr(server, "agent", agent)
    setattr(server, "activation", activation)
    setattr(server, "tool_handles", handles)
    setattr(server, "wakatime_status", status_resource)
    return server


def main() -> None:
    """Entry point for running the WakaTime agent via CLI."""

    settings = get_settings()
    configure_logging(settings.log_level)

    server = create_server(settings)
    logging.getLogger(__name__).info(
        "Launching WakaTime agent",
        extra={
            "version": __version__,
            "log_level": settings.log_level,
            "tool_state": getattr(server, "activation", {}).get("tool_state"),
        },
    )
    server.run()


if __name__ == "__main__":
    main()
