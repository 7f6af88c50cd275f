import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ledger.api.routes import router
from ledger.core.security import RateLimitMiddleware, SecurityHeadersMiddleware, SessionMiddleware
from ledger.repositories.factory import create_ledger_repository


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    repo = create_ledger_repository()
    repo.initialize()
    app.state.ledger_repo = repo
    logger.info("ledger repository ready (%s)", type(repo).__name__)
    yield


app = FastAPI(
    title="Ledger API",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(SessionMiddleware)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # malformed bodies are answered with 405, bad query or path values with 400
    errors = exc.errors()
    in_body = any(error.get("loc", ("",))[0] == "body" for error in errors)
    status_code = 405 if in_body else 400
    return JSONResponse(
        status_code=status_code,
        content={"detail": jsonable_encoder(errors)},
    )


app.include_router(router)
