# ABOUTME: CLI entry point for the Think Tool Server
# ABOUTME: Parses command-line options, merges them into configuration and starts the server

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .config import SUPPORTED_TRANSPORTS, Config, ConfigManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Think Tool MCP Server")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (optional)"
    )
    parser.add_argument(
        "--create-config",
        type=str,
        help="Create example configuration file at specified path"
    )
    parser.add_argument(
        "--transport",
        choices=SUPPORTED_TRANSPORTS,
        help="MCP transport to serve on (default: stdio)"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level"
    )
    return parser


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration and apply command-line overrides."""
    config_path = str(Path(args.config).resolve()) if args.config else None
    config = ConfigManager.load_with_env_precedence(config_path)

    server_overrides = {}
    if args.transport:
        server_overrides["transport"] = args.transport
    if args.log_level:
        server_overrides["log_level"] = args.log_level

    if server_overrides:
        server_config = config.server.model_copy(update=server_overrides)
        config = config.model_copy(update={"server": server_config})

    return config


def cli_main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for the Think Tool Server."""
    args = build_parser().parse_args(argv)

    # stdout is reserved for protocol frames, so all CLI chatter goes to stderr
    if args.create_config:
        ConfigManager.create_example_config(args.create_config)
        print(f"Example configuration created at: {args.create_config}", file=sys.stderr)
        return

    try:
        from .server import ThinkMCPServer
        config = load_config(args)
        ThinkMCPServer.create_and_run(config)
    except KeyboardInterrupt:
        print("\nServer stopped by user", file=sys.stderr)
        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    cli_main()
