# Copyright 2024 MeshChat contributors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Main entry point for MeshChat."""

import argparse
import logging
import sys
from pathlib import Path

from .core.catalog import format_command_list
from .core.config import DEFAULT_CONFIG_PATH, Config, default_config, load_config, setup_logging
from .core.memory import LoopbackTransport, generate_peer_id
from .ui.app import ChatSession, run_batch_lines, run_ui

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="MeshChat: slash-command chat client for a local mesh",
        prog="python -m meshchat"
    )
    parser.add_argument(
        '--config',
        metavar='PATH',
        help=f'Configuration file (default: {DEFAULT_CONFIG_PATH})'
    )
    parser.add_argument(
        '--nickname',
        help='Run without a configuration file using this nickname'
    )
    parser.add_argument(
        '--peer',
        action='append',
        default=[],
        metavar='NICKNAME',
        help='Add a simulated peer to the loopback directory (repeatable)'
    )
    parser.add_argument(
        '--run',
        metavar='PATH',
        help='Run a script file of chat lines and commands non-interactively and exit'
    )
    parser.add_argument(
        '--list-commands',
        action='store_true',
        help='Print the command list and exit'
    )
    return parser


def resolve_config(args) -> Config:
    """Build the configuration from --nickname or the config file, with logging set up."""
    if args.nickname:
        config = default_config(args.nickname)
        setup_logging(config)
        return config
    return load_config(Path(args.config) if args.config else None)


def build_session(config, peers: list[str]) -> ChatSession:
    directory = {generate_peer_id(): nickname for nickname in peers}
    transport = LoopbackTransport(config.peer_id, directory)
    return ChatSession(config, transport=transport)


def main():  # pragma: no cover - interactive entrypoint not exercised in unit tests
    """Main entry point for the application."""
    args = build_parser().parse_args()

    if args.list_commands:
        print(format_command_list())
        return

    try:
        config = resolve_config(args)

        logger.info("=== MeshChat starting ===")
        logger.info(f"Configuration loaded: nickname={config.nickname}, peer_id={config.peer_id}")
        session = build_session(config, args.peer)

        if args.run:
            try:
                with open(Path(args.run).expanduser(), 'r', encoding='utf-8') as f:
                    lines = f.readlines()
            except OSError as e:
                print(f"Error reading {args.run}: {e}", file=sys.stderr)
                sys.exit(1)
            sys.exit(run_batch_lines(lines, session))

        if not sys.stdin.isatty():
            sys.exit(run_batch_lines(sys.stdin.read().splitlines(), session))

        print(f"Starting MeshChat as {config.nickname}...")
        print("Type / for commands, @ to mention a peer. Press Ctrl+D to exit.")
        run_ui(session)

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("\nCreate the configuration file or pass --nickname.", file=sys.stderr)
        sys.exit(1)

    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        print("\nExiting MeshChat...")
        logger.info("Application terminated by user (Ctrl+C)")
        sys.exit(0)


if __name__ == '__main__':
    main()
