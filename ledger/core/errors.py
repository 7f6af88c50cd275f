"""Domain error types shared by the services and the API layer."""


class DomainError(ValueError):
    """Base class for domain-level errors."""


class NotFoundError(DomainError):
    """Requested record does not exist in the caller's session."""


class ConflictError(DomainError):
    """A record with the same id already exists in the session."""


def category_not_found(category_id: int) -> str:
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    return f"Transaction {transaction_id} not found"


def duplicate_category(category_id: int) -> str:
    return f"Category {category_id} already exists"


def duplicate_transaction(transaction_id: int) -> str:
    return f"Transaction {transaction_id} already exists"
