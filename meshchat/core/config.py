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

"""Configuration loading and management for MeshChat."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import toml

from .memory import generate_peer_id

DEFAULT_CONFIG_PATH = Path.home() / ".meshchat" / "config.toml"


@dataclass
class Config:
    """Application configuration."""
    nickname: str
    peer_id: str
    log_level: str  # Logging level: DEBUG, INFO, WARNING, ERROR
    log_file: Optional[Path]  # Path to log file (None = stderr)
    log_events: bool = False  # Write UI events to the log
    autojoin: list[str] = field(default_factory=list)  # Channels joined at startup


def setup_logging(config: Config) -> None:
    """Configure logging based on config settings.

    Args:
        config: Configuration object with logging settings
    """
    numeric_level = getattr(logging, config.log_level, logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if config.log_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(config.log_file)
    else:
        handler = logging.StreamHandler()

    handler.setLevel(numeric_level)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logging.info(f"Logging initialized: level={config.log_level}, file={config.log_file}")


def validate_nickname(nickname: str) -> str:
    """Return the stripped nickname or raise ValueError.

    Commands split on spaces, so a nickname with a space could never be
    addressed by /msg or /block.
    """
    nickname = (nickname or '').strip()
    if not nickname:
        raise ValueError("nickname must not be empty")
    if ' ' in nickname:
        raise ValueError(f"nickname '{nickname}' must not contain spaces")
    return nickname


def default_config(nickname: str = "anon") -> Config:
    """Config used when running without a file (tests, --nickname)."""
    return Config(
        nickname=validate_nickname(nickname),
        peer_id=generate_peer_id(),
        log_level="WARNING",
        log_file=None,
    )


def parse_config(data: dict) -> Config:
    """Build a Config from parsed TOML data.

    Raises:
        ValueError: If configuration is invalid
    """
    general_section = data.get('general', {})
    channels_section = data.get('channels', {})

    nickname = validate_nickname(general_section.get('nickname', ''))
    peer_id = str(general_section.get('peer_id') or generate_peer_id())

    log_level = str(general_section.get('log_level', 'INFO')).upper()
    if log_level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
        raise ValueError(f"Invalid log_level '{log_level}'")
    log_file_str = general_section.get('log_file')
    log_file = Path(log_file_str).expanduser() if log_file_str else None
    log_events = bool(general_section.get('log_events', False))

    autojoin_value = channels_section.get('autojoin', [])
    if isinstance(autojoin_value, str):
        autojoin_value = [c.strip() for c in autojoin_value.split(',') if c.strip()]
    autojoin = []
    for name in autojoin_value:
        name = str(name).strip()
        if not name:
            continue
        autojoin.append(name if name.startswith('#') else f"#{name}")

    return Config(
        nickname=nickname,
        peer_id=peer_id,
        log_level=log_level,
        log_file=log_file,
        log_events=log_events,
        autojoin=autojoin,
    )


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from ~/.meshchat/config.toml (or config_path).

    Returns:
        Config object with loaded or default values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If configuration is invalid
    """
    config_path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found at {config_path}\n"
            "Please create it with at least a [general] nickname."
        )

    with open(config_path, 'r') as f:
        try:
            data = toml.load(f)
        except toml.TomlDecodeError as e:
            raise ValueError(f"Could not parse {config_path}: {e}")

    config = parse_config(data)
    setup_logging(config)
    return config
