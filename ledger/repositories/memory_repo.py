import copy
import threading
from dataclasses import dataclass

from ledger.core.errors import ConflictError, duplicate_category, duplicate_transaction
from ledger.repositories.base import LedgerRepository, build_performance_snapshot


@dataclass
class _EndpointTotals:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0
    errors: int = 0


class _SessionData:
    def __init__(self) -> None:
        # dicts keep insertion order, and reassigning an existing key keeps its slot
        self.categories: dict[int, dict] = {}
        self.transactions: dict[int, dict] = {}


class MemoryLedgerRepository(LedgerRepository):
    def __init__(self) -> None:
        self.sessions: dict[str, _SessionData] = {}
        # endpoint -> running totals
        self.metrics: dict[str, _EndpointTotals] = {}
        self.lock = threading.Lock()

    def initialize(self) -> None:
        return None

    def create_session(self, session_id: str) -> bool:
        with self.lock:
            if session_id in self.sessions:
                return False
            self.sessions[session_id] = _SessionData()
            return True

    def session_exists(self, session_id: str) -> bool:
        with self.lock:
            return session_id in self.sessions

    def create_category(self, session_id: str, category: dict) -> dict:
        with self.lock:
            categories = self.sessions[session_id].categories
            if category["id"] in categories:
                raise ConflictError(duplicate_category(category["id"]))
            categories[category["id"]] = copy.deepcopy(category)
            return copy.deepcopy(category)

    def get_category(self, session_id: str, category_id: int) -> dict | None:
        with self.lock:
            found = self.sessions[session_id].categories.get(category_id)
            return copy.deepcopy(found)

    def list_categories(self, session_id: str) -> list[dict]:
        with self.lock:
            return copy.deepcopy(list(self.sessions[session_id].categories.values()))

    def rename_category(self, session_id: str, category_id: int, name: str) -> dict | None:
        with self.lock:
            found = self.sessions[session_id].categories.get(category_id)
            if found is None:
                return None
            found["name"] = name
            return copy.deepcopy(found)

    def delete_category(self, session_id: str, category_id: int) -> bool:
        with self.lock:
            return self.sessions[session_id].categories.pop(category_id, None) is not None

    def create_transaction(self, session_id: str, transaction: dict) -> dict:
        with self.lock:
            transactions = self.sessions[session_id].transactions
            if transaction["id"] in transactions:
                raise ConflictError(duplicate_transaction(transaction["id"]))
            transactions[transaction["id"]] = copy.deepcopy(transaction)
            return copy.deepcopy(transaction)

    def get_transaction(self, session_id: str, transaction_id: int) -> dict | None:
        with self.lock:
            found = self.sessions[session_id].transactions.get(transaction_id)
            return copy.deepcopy(found)

    def list_transactions(
        self,
        session_id: str,
        offset: int = 0,
        limit: int = 20,
        category_name: str | None = None,
    ) -> list[dict]:
        with self.lock:
            rows = list(self.sessions[session_id].transactions.values())
            if category_name is not None:
                rows = [
                    row
                    for row in rows
                    if row["category"] is not None and row["category"]["name"] == category_name
                ]
            return copy.deepcopy(rows[offset : offset + limit])

    def replace_transaction(self, session_id: str, transaction: dict) -> dict | None:
        with self.lock:
            transactions = self.sessions[session_id].transactions
            if transaction["id"] not in transactions:
                return None
            transactions[transaction["id"]] = copy.deepcopy(transaction)
            return copy.deepcopy(transaction)

    def set_transaction_category(
        self, session_id: str, transaction_id: int, category: dict | None
    ) -> dict | None:
        with self.lock:
            found = self.sessions[session_id].transactions.get(transaction_id)
            if found is None:
                return None
            found["category"] = copy.deepcopy(category)
            return copy.deepcopy(found)

    def delete_transaction(self, session_id: str, transaction_id: int) -> bool:
        with self.lock:
            return self.sessions[session_id].transactions.pop(transaction_id, None) is not None

    def save_metric(self, endpoint: str, duration_ms: float, status: str) -> None:
        with self.lock:
            totals = self.metrics.setdefault(endpoint, _EndpointTotals())
            totals.count += 1
            totals.total_ms += duration_ms
            totals.max_ms = max(totals.max_ms, duration_ms)
            if status == "error":
                totals.errors += 1

    def get_performance_snapshot(self) -> dict:
        with self.lock:
            endpoint_rows = [
                (endpoint, totals.count, totals.total_ms / totals.count, totals.max_ms, totals.errors)
                for endpoint, totals in sorted(self.metrics.items())
            ]
            served = sum(totals.count for totals in self.metrics.values())
            total_ms = sum(totals.total_ms for totals in self.metrics.values())

        avg_ms = total_ms / served if served else 0.0
        return build_performance_snapshot(served, avg_ms, endpoint_rows)
