from ledger.core.errors import NotFoundError, category_not_found
from ledger.repositories.base import LedgerRepository
from ledger.schemas.common import Category, CategoryRename


class CategoryService:
    """Session-scoped category records."""

    def __init__(self, repo: LedgerRepository) -> None:
        self.repo = repo

    def create_category(self, session_id: str, payload: Category) -> dict:
        return self.repo.create_category(session_id, payload.model_dump())

    def get_category(self, session_id: str, category_id: int) -> dict:
        category = self.repo.get_category(session_id, category_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def list_categories(self, session_id: str) -> list[dict]:
        return self.repo.list_categories(session_id)

    def rename_category(self, session_id: str, category_id: int, payload: CategoryRename) -> dict:
        category = self.repo.rename_category(session_id, category_id, payload.name)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def delete_category(self, session_id: str, category_id: int) -> None:
        if not self.repo.delete_category(session_id, category_id):
            raise NotFoundError(category_not_found(category_id))
