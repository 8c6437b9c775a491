"""
Responder Common Module

Shared infrastructure: configuration, credentials, the processed-comment
ledger, schemas and the completion client.
"""

from .config import ResponderConfig, load_config, save_config
from .credentials import CredentialStore
from .ledger import ProcessedLedger
from .llm_client import LLMClient

__all__ = [
    "ResponderConfig",
    "load_config",
    "save_config",
    "CredentialStore",
    "ProcessedLedger",
    "LLMClient",
]
