import os

from ledger.repositories.base import LedgerRepository
from ledger.repositories.memory_repo import MemoryLedgerRepository
from ledger.repositories.sqlite_repo import SqliteLedgerRepository


def create_ledger_repository() -> LedgerRepository:
    provider = os.getenv("DB_PROVIDER", "memory").strip().lower()

    if provider == "memory":
        return MemoryLedgerRepository()

    if provider == "sqlite":
        return SqliteLedgerRepository()

    raise ValueError(f"Unsupported DB provider '{provider}'. Use 'memory' or 'sqlite'.")
