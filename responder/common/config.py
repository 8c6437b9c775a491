"""
Configuration Management for Figma AI Responder

Loads configuration from ~/.figma-responder/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional

logger = logging.getLogger("responder.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".figma-responder"
CONFIG_PATH = CONFIG_DIR / "config.json"
LEDGER_PATH = CONFIG_DIR / "processed_comments.json"

DEFAULT_TRIGGER = "@ai"
DEFAULT_POLLING_INTERVAL = 30  # seconds
DEFAULT_MODEL = "claude-sonnet-4-20250514"


@dataclass
class FigmaConfig:
    """Figma REST API configuration"""
    access_token: str = ""
    api_base: str = "https://api.figma.com/v1"
    timeout: float = 30.0


@dataclass
class LLMConfig:
    """Anthropic completion configuration"""
    anthropic_api_key: str = ""
    anthropic_model: str = DEFAULT_MODEL
    system_prompt: str = ""  # empty means the built-in prompt
    max_tokens: int = 1024
    timeout: float = 60.0


@dataclass
class PollingConfig:
    """Polling engine configuration"""
    interval_seconds: int = DEFAULT_POLLING_INTERVAL
    trigger: str = DEFAULT_TRIGGER
    monitored_files: List[str] = field(default_factory=list)
    notifications_enabled: bool = True


@dataclass
class ServerConfig:
    """Control server configuration"""
    host: str = "127.0.0.1"
    port: int = 8787


@dataclass
class ResponderConfig:
    """Main responder configuration"""
    figma: FigmaConfig = field(default_factory=FigmaConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    polling: PollingConfig = field(default_factory=PollingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    setup_complete: bool = False
    _env_sourced_keys: set = field(default_factory=set, repr=False)

    # Accessors used by the polling engine

    def get_trigger(self) -> str:
        return self.polling.trigger or DEFAULT_TRIGGER

    def set_trigger(self, trigger: str) -> None:
        """Store the trigger lowercased and stripped.

        Raises:
            ValueError: If the trigger is empty or whitespace only
        """
        trigger = (trigger or "").strip()
        if not trigger:
            raise ValueError("Trigger must not be empty")
        self.polling.trigger = trigger.lower()

    def get_polling_interval(self) -> int:
        interval = self.polling.interval_seconds
        if not interval or interval <= 0:
            return DEFAULT_POLLING_INTERVAL
        return interval

    def get_model(self) -> str:
        return self.llm.anthropic_model or DEFAULT_MODEL

    def get_system_prompt(self) -> Optional[str]:
        return self.llm.system_prompt or None

    def get_monitored_files(self) -> List[str]:
        return list(self.polling.monitored_files)

    def add_monitored_file(self, file_key: str) -> bool:
        """Add a file to the watch list. Returns False if it was already there."""
        if file_key in self.polling.monitored_files:
            return False
        self.polling.monitored_files.append(file_key)
        return True

    def remove_monitored_file(self, file_key: str) -> bool:
        if file_key not in self.polling.monitored_files:
            return False
        self.polling.monitored_files = [f for f in self.polling.monitored_files if f != file_key]
        return True

    def get_notifications_enabled(self) -> bool:
        return self.polling.notifications_enabled


def _parse_figma_config(data: dict) -> FigmaConfig:
    """Parse figma section from config dict"""
    figma_data = data.get("figma", {})
    return FigmaConfig(
        access_token=figma_data.get("access_token", ""),
        api_base=figma_data.get("api_base", "https://api.figma.com/v1"),
        timeout=figma_data.get("timeout", 30.0),
    )


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", DEFAULT_MODEL),
        system_prompt=llm_data.get("system_prompt", ""),
        max_tokens=llm_data.get("max_tokens", 1024),
        timeout=llm_data.get("timeout", 60.0),
    )


def _parse_interval(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid interval_seconds=%r", value)
        return DEFAULT_POLLING_INTERVAL


def _parse_polling_config(data: dict) -> PollingConfig:
    """Parse polling section from config dict"""
    polling_data = data.get("polling", {})
    return PollingConfig(
        interval_seconds=_parse_interval(polling_data.get("interval_seconds", DEFAULT_POLLING_INTERVAL)),
        trigger=(str(polling_data.get("trigger") or "").strip() or DEFAULT_TRIGGER).lower(),
        monitored_files=list(polling_data.get("monitored_files", [])),
        notifications_enabled=polling_data.get("notifications_enabled", True),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    return ServerConfig(
        host=server_data.get("host", "127.0.0.1"),
        port=server_data.get("port", 8787),
    )


def load_config() -> ResponderConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.figma-responder/config.json)
    3. Default values
    """
    config = ResponderConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.figma = _parse_figma_config(data)
            config.llm = _parse_llm_config(data)
            config.polling = _parse_polling_config(data)
            config.server = _parse_server_config(data)
            config.setup_complete = data.get("setup_complete", False)
        except (json.JSONDecodeError, IOError, AttributeError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Secrets sourced from the environment are tracked so save_config never persists them
    _env_secret_map = {
        "FIGMA_ACCESS_TOKEN": (config.figma, "access_token"),
        "ANTHROPIC_API_KEY": (config.llm, "anthropic_api_key"),
    }
    for env_var, (section, attr) in _env_secret_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(section, attr, val)
            config._env_sourced_keys.add(attr)

    if os.getenv("ANTHROPIC_MODEL"):
        config.llm.anthropic_model = os.getenv("ANTHROPIC_MODEL")
    if os.getenv("RESPONDER_TRIGGER"):
        try:
            config.set_trigger(os.getenv("RESPONDER_TRIGGER"))
        except ValueError:
            logger.warning("Ignoring blank RESPONDER_TRIGGER")
    if os.getenv("RESPONDER_POLL_INTERVAL"):
        try:
            config.polling.interval_seconds = int(os.getenv("RESPONDER_POLL_INTERVAL"))
        except ValueError:
            logger.warning("Ignoring invalid RESPONDER_POLL_INTERVAL=%r", os.getenv("RESPONDER_POLL_INTERVAL"))
    if os.getenv("RESPONDER_PORT"):
        config.server.port = int(os.getenv("RESPONDER_PORT"))

    return config


def save_config(config: ResponderConfig) -> None:
    """Save configuration to file.

    Secrets that were sourced from environment variables are written as empty
    strings so that they are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    figma_section = {
        "access_token": config.figma.access_token,
        "api_base": config.figma.api_base,
        "timeout": config.figma.timeout,
    }
    llm_section = {
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "system_prompt": config.llm.system_prompt,
        "max_tokens": config.llm.max_tokens,
        "timeout": config.llm.timeout,
    }
    if "access_token" in env_sourced:
        figma_section["access_token"] = ""
    if "anthropic_api_key" in env_sourced:
        llm_section["anthropic_api_key"] = ""

    data = {
        "figma": figma_section,
        "llm": llm_section,
        "polling": {
            "interval_seconds": config.polling.interval_seconds,
            "trigger": config.polling.trigger,
            "monitored_files": config.polling.monitored_files,
            "notifications_enabled": config.polling.notifications_enabled,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
        },
        "setup_complete": config.setup_complete,
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Secrets live in this file
    CONFIG_PATH.chmod(0o600)


def ensure_directories() -> None:
    """Ensure required directories exist"""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
