"""WakaTime agent diagnostics CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

from wakatime_agent.agent import WakaTimeAgent
from wakatime_agent.config import AgentSettings
from wakatime_agent.heartbeat import EditorDocument
from wakatime_agent.server import configure_logging
from wakatime_agent.storage import ConfigStores, ConfigWriteError


def load_stores(settings: AgentSettings) -> ConfigStores:
    return ConfigStores.from_settings(settings)


def load_agent(settings: AgentSettings) -> WakaTimeAgent:
    return WakaTimeAgent(settings)


def cmd_config_get(args: argparse.Namespace) -> None:
    stores = load_stores(AgentSettings())
    print(stores.get(args.section, args.key, internal=args.internal))


def cmd_config_set(args: argparse.Namespace) -> None:
    stores = load_stores(AgentSettings())
    try:
        stores.set(args.section, args.key, args.value, internal=args.internal)
    except (ConfigWriteError, ValueError) as exc:
        print(f"Unable to save setting: {exc}")
        raise SystemExit(1)


def cmd_cli_status(args: argparse.Namespace) -> None:
    agent = load_agent(AgentSettings())
    state = asyncio.run(agent.installer.check_state())
    payload = {"state": state.value, **asyncio.run(agent.status())}
    if args.json:
        print(json.dumps(payload, indent=2))
    else:
        cli = payload["cli"]
        print(f"wakatime-cli [{state.value}] {cli['version'] or '-'} -> {cli['path'] or '-'}")


def cmd_cli_install(args: argparse.Namespace) -> None:
    agent = load_agent(AgentSettings())
    if not asyncio.run(agent.installer.install()):
        print("wakatime-cli install skipped or failed; see log output")
        raise SystemExit(1)
    print(f"Installed wakatime-cli to {agent.installer.alias_location()}")


def cmd_heartbeat(args: argparse.Namespace) -> None:
    agent = load_agent(AgentSettings())
    document = EditorDocument(path=os.path.abspath(args.file), syntax=args.language)
    sent = asyncio.run(agent.handle_event(document, is_write=args.write))
    status = agent.dispatcher.last_status
    print(json.dumps({"sent": sent, "status": status.value if status else None}))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="WakaTime agent diagnostics")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p_get = sub.add_parser("config-get", help="Read a value from ~/.wakatime.cfg")
    p_get.add_argument("section")
    p_get.add_argument("key")
    p_get.add_argument("--internal", action="store_true", help="Use ~/.wakatime-internal.cfg")
    p_get.set_defaults(func=cmd_config_get)

    p_set = sub.add_parser("config-set", help="Write a value to ~/.wakatime.cfg")
    p_set.add_argument("section")
    p_set.add_argument("key")
    p_set.add_argument("value")
    p_set.add_argument("--internal", action="store_true", help="Use ~/.wakatime-internal.cfg")
    p_set.set_defaults(func=cmd_config_set)

    p_status = sub.add_parser("cli-status", help="Check the installed wakatime-cli")
    p_status.add_argument("--json", action="store_true", help="Output JSON")
    p_status.set_defaults(func=cmd_cli_status)

    p_install = sub.add_parser("cli-install", help="Download the latest wakatime-cli")
    p_install.set_defaults(func=cmd_cli_install)

    p_heartbeat = sub.add_parser("heartbeat", help="Send a single heartbeat for a file")
    p_heartbeat.add_argument("file")
    p_heartbeat.add_argument("--write", action="store_true", help="Mark as a save event")
    p_heartbeat.add_argument("--language")
    p_heartbeat.set_defaults(func=cmd_heartbeat)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    configure_logging("DEBUG" if args.verbose else "WARNING")
    logging.getLogger("wakatime_agent").debug("Running %s", args.cmd)
    args.func(args)


if __name__ == "__main__":
    main()
