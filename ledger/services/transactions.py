from ledger.core.errors import (
    NotFoundError,
    category_not_found,
    transaction_not_found,
)
from ledger.repositories.base import LedgerRepository
from ledger.schemas.common import Transaction, TransactionFields


DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class TransactionService:
    """Session-scoped transaction records.

    Listing applies the category-name filter first and then takes the
    ``offset``/``limit`` slice of the remaining records in insertion order.
    A transaction's category is an embedded ``{id, name}`` snapshot; only
    ``assign_category`` resolves it against the session's stored categories.
    """

    def __init__(self, repo: LedgerRepository) -> None:
        self.repo = repo

    def create_transaction(self, session_id: str, payload: Transaction) -> dict:
        return self.repo.create_transaction(session_id, payload.model_dump())

    def get_transaction(self, session_id: str, transaction_id: int) -> dict:
        transaction = self.repo.get_transaction(session_id, transaction_id)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def list_transactions(
        self,
        session_id: str,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
        category_name: str | None = None,
    ) -> list[dict]:
        return self.repo.list_transactions(
            session_id,
            offset=offset,
            limit=limit,
            category_name=category_name,
        )

    def replace_transaction(
        self, session_id: str, transaction_id: int, payload: TransactionFields
    ) -> dict:
        transaction = Transaction.from_fields(transaction_id, payload)
        replaced = self.repo.replace_transaction(session_id, transaction.model_dump())
        if replaced is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return replaced

    def assign_category(self, session_id: str, transaction_id: int, category_id: int) -> dict:
        category = self.repo.get_category(session_id, category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        transaction = self.repo.set_transaction_category(session_id, transaction_id, category)
        if transaction is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return transaction

    def delete_transaction(self, session_id: str, transaction_id: int) -> None:
        if not self.repo.delete_transaction(session_id, transaction_id):
            raise NotFoundError(transaction_not_found(transaction_id))
