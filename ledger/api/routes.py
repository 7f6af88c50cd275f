import logging
import time
from typing import Annotated, Callable, List

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Path, Query, Request, Response
from fastapi.concurrency import run_in_threadpool

from ledger.core.errors import ConflictError, NotFoundError
from ledger.schemas.common import (
    MAX_ID,
    MIN_ID,
    Category,
    CategoryAssignment,
    CategoryRename,
    PerformanceResponse,
    SessionResponse,
    Transaction,
    TransactionFields,
)
from ledger.services.categories import CategoryService
from ledger.services.sessions import SessionService
from ledger.services.transactions import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TransactionService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["ledger"])

PathId = Annotated[int, Path(ge=MIN_ID, le=MAX_ID)]


def get_app(request: Request) -> FastAPI:
    return request.app


def get_session_id(request: Request) -> str:
    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return session_id


def get_session_service(request: Request) -> SessionService:
    return SessionService(request.app.state.ledger_repo)


def get_category_service(request: Request) -> CategoryService:
    return CategoryService(request.app.state.ledger_repo)


def get_transaction_service(request: Request) -> TransactionService:
    return TransactionService(request.app.state.ledger_repo)


async def run_with_metrics(
    app: FastAPI,
    endpoint: str,
    operation: Callable,
):
    start = time.perf_counter()
    try:
        response = await run_in_threadpool(operation)
        status = "success"
        return response
    except NotFoundError as exc:
        status = "error"
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except ConflictError as exc:
        status = "error"
        logger.warning("%s rejected: %s", endpoint, exc)
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except Exception:
        status = "error"
        logger.exception("%s failed", endpoint)
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        app.state.ledger_repo.save_metric(endpoint=endpoint, duration_ms=duration_ms, status=status)


@router.post("/sessions", response_model=SessionResponse)
async def create_session(
    app: FastAPI = Depends(get_app),
    sessions: SessionService = Depends(get_session_service),
) -> SessionResponse:
    result = await run_with_metrics(
        app,
        endpoint="sessions:create",
        operation=sessions.create_session,
    )
    return SessionResponse.model_validate(result)


@router.get("/categories", response_model=List[Category])
async def list_categories(
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    categories: CategoryService = Depends(get_category_service),
) -> List[Category]:
    result = await run_with_metrics(
        app,
        endpoint="categories:list",
        operation=lambda: categories.list_categories(session_id),
    )
    return [Category.model_validate(row) for row in result]


@router.post("/categories", response_model=Category, status_code=201)
async def create_category(
    payload: Category,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    categories: CategoryService = Depends(get_category_service),
) -> Category:
    result = await run_with_metrics(
        app,
        endpoint="categories:create",
        operation=lambda: categories.create_category(session_id, payload),
    )
    return Category.model_validate(result)


@router.get("/categories/{category_id}", response_model=Category)
async def get_category(
    category_id: PathId,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    categories: CategoryService = Depends(get_category_service),
) -> Category:
    result = await run_with_metrics(
        app,
        endpoint="categories:get",
        operation=lambda: categories.get_category(session_id, category_id),
    )
    return Category.model_validate(result)


@router.put("/categories/{category_id}", response_model=Category)
async def rename_category(
    category_id: PathId,
    payload: CategoryRename,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    categories: CategoryService = Depends(get_category_service),
) -> Category:
    result = await run_with_metrics(
        app,
        endpoint="categories:rename",
        operation=lambda: categories.rename_category(session_id, category_id, payload),
    )
    return Category.model_validate(result)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: PathId,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    categories: CategoryService = Depends(get_category_service),
) -> Response:
    await run_with_metrics(
        app,
        endpoint="categories:delete",
        operation=lambda: categories.delete_category(session_id, category_id),
    )
    return Response(status_code=204)


@router.get("/transactions", response_model=List[Transaction])
async def list_transactions(
    offset: int = Query(default=0, ge=0, le=MAX_ID),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    category: str | None = Query(default=None),
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    transactions: TransactionService = Depends(get_transaction_service),
) -> List[Transaction]:
    result = await run_with_metrics(
        app,
        endpoint="transactions:list",
        operation=lambda: transactions.list_transactions(
            session_id,
            offset=offset,
            limit=limit,
            category_name=category,
        ),
    )
    return [Transaction.model_validate(row) for row in result]


@router.post("/transactions", response_model=Transaction, status_code=201)
async def create_transaction(
    payload: Transaction,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Transaction:
    result = await run_with_metrics(
        app,
        endpoint="transactions:create",
        operation=lambda: transactions.create_transaction(session_id, payload),
    )
    return Transaction.model_validate(result)


@router.get("/transactions/{transaction_id}", response_model=Transaction)
async def get_transaction(
    transaction_id: PathId,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Transaction:
    result = await run_with_metrics(
        app,
        endpoint="transactions:get",
        operation=lambda: transactions.get_transaction(session_id, transaction_id),
    )
    return Transaction.model_validate(result)


@router.put("/transactions/{transaction_id}", response_model=Transaction)
async def replace_transaction(
    transaction_id: PathId,
    payload: TransactionFields,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Transaction:
    result = await run_with_metrics(
        app,
        endpoint="transactions:replace",
        operation=lambda: transactions.replace_transaction(session_id, transaction_id, payload),
    )
    return Transaction.model_validate(result)


@router.patch("/transactions/{transaction_id}/category", response_model=Transaction)
async def assign_transaction_category(
    transaction_id: PathId,
    payload: CategoryAssignment,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Transaction:
    result = await run_with_metrics(
        app,
        endpoint="transactions:assign_category",
        operation=lambda: transactions.assign_category(
            session_id, transaction_id, payload.category_id
        ),
    )
    return Transaction.model_validate(result)


@router.delete("/transactions/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: PathId,
    app: FastAPI = Depends(get_app),
    session_id: str = Depends(get_session_id),
    transactions: TransactionService = Depends(get_transaction_service),
) -> Response:
    await run_with_metrics(
        app,
        endpoint="transactions:delete",
        operation=lambda: transactions.delete_transaction(session_id, transaction_id),
    )
    return Response(status_code=204)


@router.get("/performance", response_model=PerformanceResponse)
async def get_performance(
    app: FastAPI = Depends(get_app),
) -> PerformanceResponse:
    try:
        data = app.state.ledger_repo.get_performance_snapshot()
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return PerformanceResponse.model_validate(data)
