from .base import Storage
from .vault_store import VaultStore

__all__ = ["Storage", "VaultStore"]
