"""
Account Service API Application Factory
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from .accounts import router as accounts_router
from .transactions import router as transactions_router
from ..errors import AccountServiceError, ErrorCategory, ErrorCode
from ..logging_config import get_logger, log_action
from ..system import AccountSystem
from .. import __version__

logger = get_logger("account_service.api")

STATUS_BY_CATEGORY = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.CONFLICT: 409,
    ErrorCategory.EXHAUSTION: 503,
    ErrorCategory.INTERNAL: 500,
}


def _error_response(error: AccountServiceError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_CATEGORY[error.category],
        content=error.to_dict()
    )


async def handle_account_service_error(request: Request, exc: AccountServiceError) -> JSONResponse:
    log_action(
        logger, "error", f"{exc.code.name} is occurred",
        action=f"{request.method} {request.url.path}", error_code=exc.code.name
    )
    return _error_response(exc)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    log_action(
        logger, "error", "Request validation failed",
        action=f"{request.method} {request.url.path}",
        error_code=ErrorCode.INVALID_REQUEST.name,
        extra={"errors": exc.errors()}
    )
    return _error_response(AccountServiceError(ErrorCode.INVALID_REQUEST))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s %s", request.method, request.url.path)
    return _error_response(AccountServiceError(ErrorCode.INTERNAL_SERVER_ERROR))


def create_app(system: Optional[AccountSystem] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Account Service API",
        description="Accounts and locked balance use/cancel with an audit trail",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.account_system = system or AccountSystem()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AccountServiceError, handle_account_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(accounts_router, prefix="/account", tags=["Accounts"])
    app.include_router(transactions_router, prefix="/transaction", tags=["Transactions"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "account_service_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Account Service API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "accounts": "/account",
                "transactions": "/transaction"
            }
        }

    return app


def run_server(host: str = "0.0.0.0", port: int = 8080, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "account_service.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
