import json
import logging
import os
import sqlite3
from datetime import datetime, timezone

from ledger.core.errors import ConflictError, duplicate_category, duplicate_transaction
from ledger.repositories.base import LedgerRepository, build_performance_snapshot


logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = "id, date, amount, external_iban, type, category_id, category_name"


def _row_to_transaction(row) -> dict:
    transaction_id, date, amount, external_iban, tx_type, category_id, category_name = row
    category = None
    if category_id is not None:
        category = {"id": category_id, "name": category_name}
    return {
        "id": transaction_id,
        "date": date,
        # stored as JSON text so integer amounts come back as integers
        "amount": json.loads(amount),
        "external_iban": external_iban,
        "type": tx_type,
        "category": category,
    }


def _transaction_params(transaction: dict) -> tuple:
    category = transaction["category"]
    return (
        transaction["date"],
        json.dumps(transaction["amount"]),
        transaction["external_iban"],
        transaction["type"],
        category["id"] if category is not None else None,
        category["name"] if category is not None else None,
    )


class SqliteLedgerRepository(LedgerRepository):
    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path or os.getenv("DB_PATH", "ledger.db")

    def initialize(self) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id TEXT PRIMARY KEY,
                    created_at TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS categories (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL REFERENCES sessions (id),
                    id INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    UNIQUE (session_id, id)
                );
                CREATE TABLE IF NOT EXISTS transactions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    session_id TEXT NOT NULL REFERENCES sessions (id),
                    id INTEGER NOT NULL,
                    date TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    external_iban TEXT NOT NULL,
                    type TEXT NOT NULL,
                    category_id INTEGER,
                    category_name TEXT,
                    UNIQUE (session_id, id)
                );
                CREATE TABLE IF NOT EXISTS request_metrics (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    endpoint TEXT NOT NULL,
                    duration_ms REAL NOT NULL,
                    status TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )
            conn.commit()
        logger.info("sqlite ledger initialized at %s", self.db_path)

    def create_session(self, session_id: str) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            try:
                conn.execute(
                    "INSERT INTO sessions (id, created_at) VALUES (?, ?)",
                    (session_id, datetime.now(timezone.utc).isoformat()),
                )
            except sqlite3.IntegrityError:
                return False
            conn.commit()
        return True

    def session_exists(self, session_id: str) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute("SELECT 1 FROM sessions WHERE id = ?", (session_id,)).fetchone()
        return row is not None

    def create_category(self, session_id: str, category: dict) -> dict:
        with sqlite3.connect(self.db_path) as conn:
            try:
                conn.execute(
                    "INSERT INTO categories (session_id, id, name) VALUES (?, ?, ?)",
                    (session_id, category["id"], category["name"]),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(duplicate_category(category["id"])) from exc
            conn.commit()
        return {"id": category["id"], "name": category["name"]}

    def get_category(self, session_id: str, category_id: int) -> dict | None:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, name FROM categories WHERE session_id = ? AND id = ?",
                (session_id, category_id),
            ).fetchone()
        if row is None:
            return None
        return {"id": row[0], "name": row[1]}

    def list_categories(self, session_id: str) -> list[dict]:
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT id, name FROM categories WHERE session_id = ? ORDER BY seq",
                (session_id,),
            ).fetchall()
        return [{"id": category_id, "name": name} for category_id, name in rows]

    def rename_category(self, session_id: str, category_id: int, name: str) -> dict | None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "UPDATE categories SET name = ? WHERE session_id = ? AND id = ?",
                (name, session_id, category_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            return None
        return {"id": category_id, "name": name}

    def delete_category(self, session_id: str, category_id: int) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM categories WHERE session_id = ? AND id = ?",
                (session_id, category_id),
            )
            conn.commit()
        return cursor.rowcount > 0

    def create_transaction(self, session_id: str, transaction: dict) -> dict:
        with sqlite3.connect(self.db_path) as conn:
            try:
                conn.execute(
                    f"""
                    INSERT INTO transactions (session_id, {TRANSACTION_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (session_id, transaction["id"], *_transaction_params(transaction)),
                )
            except sqlite3.IntegrityError as exc:
                raise ConflictError(duplicate_transaction(transaction["id"])) from exc
            conn.commit()
        return transaction

    def get_transaction(self, session_id: str, transaction_id: int) -> dict | None:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE session_id = ? AND id = ?",
                (session_id, transaction_id),
            ).fetchone()
        return _row_to_transaction(row) if row is not None else None

    def list_transactions(
        self,
        session_id: str,
        offset: int = 0,
        limit: int = 20,
        category_name: str | None = None,
    ) -> list[dict]:
        query = f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE session_id = ?"
        params: list = [session_id]
        if category_name is not None:
            query += " AND category_name = ?"
            params.append(category_name)
        query += " ORDER BY seq LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_transaction(row) for row in rows]

    def replace_transaction(self, session_id: str, transaction: dict) -> dict | None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                UPDATE transactions
                SET date = ?, amount = ?, external_iban = ?, type = ?,
                    category_id = ?, category_name = ?
                WHERE session_id = ? AND id = ?
                """,
                (*_transaction_params(transaction), session_id, transaction["id"]),
            )
            conn.commit()
        if cursor.rowcount == 0:
            return None
        return transaction

    def set_transaction_category(
        self, session_id: str, transaction_id: int, category: dict | None
    ) -> dict | None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                """
                UPDATE transactions SET category_id = ?, category_name = ?
                WHERE session_id = ? AND id = ?
                """,
                (
                    category["id"] if category is not None else None,
                    category["name"] if category is not None else None,
                    session_id,
                    transaction_id,
                ),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE session_id = ? AND id = ?",
                (session_id, transaction_id),
            ).fetchone()
            conn.commit()
        return _row_to_transaction(row)

    def delete_transaction(self, session_id: str, transaction_id: int) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE session_id = ? AND id = ?",
                (session_id, transaction_id),
            )
            conn.commit()
        return cursor.rowcount > 0

    def save_metric(self, endpoint: str, duration_ms: float, status: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO request_metrics (endpoint, duration_ms, status, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (endpoint, duration_ms, status, datetime.now(timezone.utc).isoformat()),
            )
            conn.commit()

    def get_performance_snapshot(self) -> dict:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("SELECT COUNT(1), AVG(duration_ms) FROM request_metrics")
            row = cursor.fetchone()
            endpoint_rows = conn.execute(
                """
                SELECT endpoint,
                       COUNT(1) AS total,
                       AVG(duration_ms) AS avg_ms,
                       MAX(duration_ms) AS max_ms,
                       SUM(CASE WHEN status='error' THEN 1 ELSE 0 END) AS error_count
                FROM request_metrics
                GROUP BY endpoint
                ORDER BY endpoint
                """
            ).fetchall()

        served = int(row[0] or 0)
        avg_ms = float(row[1] or 0.0)
        return build_performance_snapshot(served, avg_ms, endpoint_rows)
