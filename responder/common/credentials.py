"""
Credential Store

Accessors for the Figma personal access token and the Anthropic API key.
Secrets are kept in the owner-only (0600) config file, with environment
variables taking precedence (see config.load_config).
"""

from typing import Optional

from .config import ResponderConfig, save_config


class CredentialStore:
    """Reads and writes API credentials through a ResponderConfig."""

    def __init__(self, config: ResponderConfig, persist: bool = True):
        """
        Args:
            config: Loaded configuration holding the secrets
            persist: Write changes back to disk on every set_* call
        """
        self._config = config
        self._persist = persist

    def get_figma_token(self) -> Optional[str]:
        return self._config.figma.access_token or None

    def set_figma_token(self, token: str) -> None:
        self._config.figma.access_token = token.strip()
        # An explicitly set value replaces the env-sourced one and may be saved
        self._config._env_sourced_keys.discard("access_token")
        self._save()

    def get_anthropic_key(self) -> Optional[str]:
        return self._config.llm.anthropic_api_key or None

    def set_anthropic_key(self, key: str) -> None:
        self._config.llm.anthropic_api_key = key.strip()
        self._config._env_sourced_keys.discard("anthropic_api_key")
        self._save()

    def has_credentials(self) -> bool:
        return bool(self.get_figma_token() and self.get_anthropic_key())

    def _save(self) -> None:
        if self._persist:
            save_config(self._config)
