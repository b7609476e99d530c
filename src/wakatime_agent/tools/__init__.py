"""Tool registration for the WakaTime MCP server.

These tools are the event source adapter: an editor (or an agent acting on
its behalf) reports document activity through ``send_heartbeat`` and manages
the user settings through the remaining tools.
"""

from __future__ import annotations

import logging
import os
import webbrowser
from dataclasses import dataclass
from typing import Any

from fastmcp import Context, FastMCP

from ..agent import WakaTimeAgent
from ..cli import obfuscate_key
from ..heartbeat import EditorDocument

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolHandles:
    send_heartbeat: Any
    set_api_key: Any
    set_debug: Any
    open_dashboard: Any
    cli_status: Any


def _resolve_path(file_path: str | None) -> str | None:
    if not file_path or not file_path.strip():
        return None
    return os.path.abspath(os.path.expanduser(file_path.strip()))


def register_tools(server: FastMCP, *, agent: WakaTimeAgent) -> ToolHandles:
    """Register the agent's MCP tools on the server."""

    async def _send_heartbeat(
        file_path: str,
        is_write: bool = False,
        language: str | None = None,
        is_remote: bool = False,
        content: str | None = None,
        is_empty: bool = False,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Report activity on a document; a heartbeat is sent unless throttled."""

        path = _resolve_path(file_path)
        document = EditorDocument(
            path=path,
            is_empty=is_empty,
            syntax=language,
            is_remote=is_remote,
            text=content or "",
        )
        sent = await agent.handle_event(document, is_write=is_write)
        last_status = agent.dispatcher.last_status
        response = {
            "sent": sent,
            "file_path": path,
            "status": last_status.value if sent and last_status else None,
        }
        await _emit_log(
            context,
            "debug",
            "Heartbeat sent" if sent else "Heartbeat skipped",
            extra=response,
        )
        return response

    async def _set_api_key(api_key: str, context: Context | None = None) -> dict[str, Any]:
        """Save a WakaTime API key to ~/.wakatime.cfg. Invalid keys are ignored."""

        saved = agent.set_api_key(api_key)
        response = {
            "saved": saved,
            "api_key": obfuscate_key(agent.get_api_key()) or None,
        }
        await _emit_log(
            context,
            "info",
            "API key saved" if saved else "API key rejected",
            extra={"saved": saved},
        )
        return response

    async def _set_debug(enabled: bool, context: Context | None = None) -> dict[str, Any]:
        """Enable or disable debug logging."""

        saved = agent.set_debug(enabled)
        await _emit_log(
            context,
            "info",
            f"Debug mode {'enabled' if enabled else 'disabled'}",
            extra={"saved": saved},
        )
        return {"saved": saved, "debug": agent.is_debug_enabled()}

    def _open_dashboard(open_browser: bool = False) -> dict[str, Any]:
        """Return the WakaTime dashboard URL, optionally opening it in a browser."""

        url = agent.dashboard_url()
        opened = webbrowser.open(url) if open_browser else False
        return {"url": url, "opened": opened}

    async def _cli_status() -> dict[str, Any]:
        """Describe the installed wakatime-cli and the last heartbeat."""

        return await agent.status()

    tool_heartbeat = server.tool(
        name="send_heartbeat",
        description=(
            "Report editor activity on a file. Heartbeats for the same file are "
            "throttled to one every two minutes unless the file was saved."
        ),
    )(_send_heartbeat)

    tool_api_key = server.tool(
        name="set_api_key",
        description="Store the WakaTime API key used by wakatime-cli.",
    )(_set_api_key)

    tool_debug = server.tool(
        name="set_debug",
        description="Toggle debug logging for the agent and persist the choice.",
    )(_set_debug)

    tool_dashboard = server.tool(
        name="open_dashboard",
        description="Get (and optionally open) the WakaTime dashboard URL.",
    )(_open_dashboard)

    tool_status = server.tool(
        name="cli_status",
        description="Report wakatime-cli installation details and heartbeat state.",
    )(_cli_status)

    return ToolHandles(
        send_heartbeat=tool_heartbeat,
        set_api_key=tool_api_key,
        set_debug=tool_debug,
        open_dashboard=tool_dashboard,
        cli_status=tool_status,
    )


async def _emit_log(
    context: Context | None,
    level: str,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log locally and, when a client context is present, forward to the client."""

    payload = extra or {}
    getattr(logger, level, logger.info)(message, extra={"tool_payload": payload})

    if context is None:
        return
    ctx_method = getattr(context, level, None)
    if callable(ctx_method):
        await ctx_method(message)


__all__ = ["register_tools", "ToolHandles"]
