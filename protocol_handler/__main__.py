from __future__ import annotations

"""CLI entrypoint for registering URL scheme handlers."""

import argparse
import logging
import platform
import sys
from pathlib import Path

from protocol_handler import register_protocol_handler, unregister_protocol_handler
from protocol_handler.config import default_config_path, ensure_default_config, load_config
from protocol_handler.errors import ProtocolHandlerError
from protocol_handler.linux import read_protocol_handler


def _status(name: str) -> int:
    if platform.system() != "Linux":
        print(f"Protocol handler registration is not supported on {platform.system()}")
        return 2
    scheme = read_protocol_handler(name)
    if scheme is None:
        print(f"{name}: not registered")
    else:
        print(f"{name}: {scheme}://")
    return 0


def _init_config(config_path: Path | None) -> int:
    path = config_path or default_config_path()
    try:
        written = ensure_default_config(path)
    except OSError as exc:
        print(f"Failed to write config: {exc}")
        return 1
    if written:
        print(f"Wrote {path}.")
    else:
        print(f"Config already exists at {path}.")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Register, unregister or inspect a URL scheme handler."""
    parser = argparse.ArgumentParser(description="Desktop URL scheme handler registration")
    parser.add_argument("--config", help="Override config path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command")

    register_parser = subparsers.add_parser("register", help="Register a scheme handler")
    register_parser.add_argument("name", help="Desktop entry name, without .desktop")
    register_parser.add_argument("scheme", help="URL scheme, e.g. myapp for myapp://")
    unregister_parser = subparsers.add_parser("unregister", help="Remove the scheme handler")
    unregister_parser.add_argument("name", help="Desktop entry name, without .desktop")
    status_parser = subparsers.add_parser("status", help="Show the registered scheme")
    status_parser.add_argument("name", help="Desktop entry name, without .desktop")
    subparsers.add_parser("init-config", help="Write a default config file")

    args = parser.parse_args(argv)
    config_path = Path(args.config).expanduser() if args.config else None
    config = load_config(config_path=config_path)
    level = "DEBUG" if args.verbose else config.log_level
    logging.basicConfig(level=getattr(logging, level), format="%(asctime)s %(levelname)s %(message)s")

    try:
        if args.command == "register":
            path = register_protocol_handler(args.name, args.scheme, executable=config.exec_command)
            print(f"Registered {args.scheme}:// in {path}.")
            return 0
        if args.command == "unregister":
            path = unregister_protocol_handler(args.name)
            print(f"Unregistered scheme handler in {path}.")
            return 0
        if args.command == "status":
            return _status(args.name)
        if args.command == "init-config":
            return _init_config(config_path)
    except ProtocolHandlerError as exc:
        print(f"Failed to {args.command} {args.name}: {exc}")
        return 1
    except NotImplementedError as exc:
        print(exc)
        return 2

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
