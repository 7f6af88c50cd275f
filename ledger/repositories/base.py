import os
import threading

import psutil


class LedgerRepository:
    """Storage contract shared by the memory and sqlite backends.

    Records are plain dicts shaped like the API payloads: categories are
    ``{"id", "name"}`` and transactions are ``{"id", "date", "amount",
    "external_iban", "type", "category"}``. Every method taking a
    ``session_id`` only ever sees that session's records. Lookups return
    ``None`` for unknown ids; creates raise ``ConflictError`` on a duplicate
    id. Each call is atomic with respect to concurrent callers.
    """

    def initialize(self) -> None:
        raise NotImplementedError

    def create_session(self, session_id: str) -> bool:
        """Store a new session, returning False if the token is taken."""
        raise NotImplementedError

    def session_exists(self, session_id: str) -> bool:
        raise NotImplementedError

    def create_category(self, session_id: str, category: dict) -> dict:
        raise NotImplementedError

    def get_category(self, session_id: str, category_id: int) -> dict | None:
        raise NotImplementedError

    def list_categories(self, session_id: str) -> list[dict]:
        raise NotImplementedError

    def rename_category(self, session_id: str, category_id: int, name: str) -> dict | None:
        raise NotImplementedError

    def delete_category(self, session_id: str, category_id: int) -> bool:
        raise NotImplementedError

    def create_transaction(self, session_id: str, transaction: dict) -> dict:
        raise NotImplementedError

    def get_transaction(self, session_id: str, transaction_id: int) -> dict | None:
        raise NotImplementedError

    def list_transactions(
        self,
        session_id: str,
        offset: int = 0,
        limit: int = 20,
        category_name: str | None = None,
    ) -> list[dict]:
        raise NotImplementedError

    def replace_transaction(self, session_id: str, transaction: dict) -> dict | None:
        raise NotImplementedError

    def set_transaction_category(
        self, session_id: str, transaction_id: int, category: dict | None
    ) -> dict | None:
        raise NotImplementedError

    def delete_transaction(self, session_id: str, transaction_id: int) -> bool:
        raise NotImplementedError

    def save_metric(self, endpoint: str, duration_ms: float, status: str) -> None:
        raise NotImplementedError

    def get_performance_snapshot(self) -> dict:
        raise NotImplementedError


def build_performance_snapshot(served: int, avg_ms: float, endpoint_rows) -> dict:
    """Shape aggregated metric rows ``(endpoint, total, avg, max, errors)``."""
    process = psutil.Process(os.getpid())
    memory_mb = process.memory_info().rss / (1024 * 1024)
    endpoint_stats = []
    for endpoint, total, endpoint_avg_ms, max_ms, error_count in endpoint_rows:
        endpoint_stats.append(
            {
                "endpoint": endpoint,
                "count": int(total or 0),
                "avgMs": round(float(endpoint_avg_ms or 0.0), 3),
                "maxMs": round(float(max_ms or 0.0), 3),
                "errorCount": int(error_count or 0),
            }
        )
    return {
        "time": f"{avg_ms:.3f} ms",
        "memory": f"{memory_mb:.2f} MB",
        "threads": threading.active_count(),
        "requestsServed": served,
        "endpointStats": endpoint_stats,
    }
