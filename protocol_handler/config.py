from __future__ import annotations

import configparser
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

CONFIG_ENV_VAR = "PROTOCOL_HANDLER_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/protocol-handler/config")
SECTION = "protocol_handler"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_CONFIG = """[protocol_handler]
# Command written to Exec= when a desktop entry has none. Blank uses the running
# program, or the Python interpreter when that is not an executable file. The
# %u placeholder is appended automatically.
exec_command =
log_level = WARNING
"""


@dataclass(frozen=True)
class ProtocolHandlerConfig:
    exec_command: str
    log_level: str
    config_path: Path | None = None


def default_config_path() -> Path:
    env_override = os.getenv(CONFIG_ENV_VAR, "").strip()
    if env_override:
        return Path(env_override).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def default_exec_command() -> str:
    """Return the running program if it can be executed, else the interpreter."""
    if sys.argv and sys.argv[0]:
        program = Path(sys.argv[0]).resolve()
        if program.is_file() and os.access(program, os.X_OK):
            return str(program)
    return sys.executable


def _load_config_parser(config_path: Path) -> configparser.ConfigParser | None:
    """Load the INI config file, or None if it cannot be parsed."""
    parser = configparser.ConfigParser(strict=False, inline_comment_prefixes=("#", ";"))
    try:
        parser.read(config_path, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as exc:
        logging.getLogger(__name__).warning(
            "Config file %s is invalid (%s); using defaults.",
            config_path,
            exc,
        )
        return None
    return parser


def _get_log_level(section: configparser.SectionProxy | dict, config_path: Path) -> str:
    raw_value = str(section.get("log_level", "")).strip().upper()
    if not raw_value:
        return "WARNING"
    if raw_value not in LOG_LEVELS:
        logging.getLogger(__name__).warning(
            "Config value for log_level (%s) in %s is invalid; using default WARNING.",
            raw_value,
            config_path,
        )
        return "WARNING"
    return raw_value


def load_config(config_path: Path | None = None) -> ProtocolHandlerConfig:
    """Load settings from the INI config; a missing file yields defaults."""
    if config_path is None:
        config_path = default_config_path()
    if not config_path.exists():
        return ProtocolHandlerConfig(exec_command=default_exec_command(), log_level="WARNING")

    parser = _load_config_parser(config_path)
    if parser is None:
        return ProtocolHandlerConfig(exec_command=default_exec_command(), log_level="WARNING")
    section = parser[SECTION] if parser.has_section(SECTION) else {}

    exec_command = str(section.get("exec_command", "")).strip() or default_exec_command()
    return ProtocolHandlerConfig(
        exec_command=exec_command,
        log_level=_get_log_level(section, config_path),
        config_path=config_path,
    )


def ensure_default_config(config_path: Path) -> bool:
    """Write DEFAULT_CONFIG to `config_path` unless it exists; return True if written."""
    if config_path.exists():
        return False
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logging.getLogger(__name__).info("Created default config at %s", config_path)
    return True
