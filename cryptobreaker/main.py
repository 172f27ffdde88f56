from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cryptobreaker.api.v1.router import api_router
from cryptobreaker.core.config import get_settings
from cryptobreaker.core.exceptions import (
    CryptanalysisError,
    EngineNotFoundError,
    ValidationError,
)
from cryptobreaker.core.logging import configure_logging
from cryptobreaker.models.schemas import ErrorResponse

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown."""
    # Startup
    logger = configure_logging(settings.log_level)
    logger.info("%s starting (%s)", settings.app_name, settings.app_env)
    yield
    # Shutdown


def _error_response(status_code: int, exc: CryptanalysisError) -> JSONResponse:
    body = ErrorResponse(
        error=type(exc).__name__,
        message=exc.message,
        details=exc.details,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description=(
            "Classical cipher cryptanalysis API. "
            "Classify ciphertexts and break Caesar, substitution and "
            "Vigenère ciphers from ciphertext alone."
        ),
        version="0.1.0",
        openapi_url=f"{settings.api_v1_prefix}/openapi.json",
        docs_url=f"{settings.api_v1_prefix}/docs",
        redoc_url=f"{settings.api_v1_prefix}/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, exc)

    @app.exception_handler(EngineNotFoundError)
    async def engine_not_found_handler(
        request: Request, exc: EngineNotFoundError
    ) -> JSONResponse:
        return _error_response(status.HTTP_404_NOT_FOUND, exc)

    @app.exception_handler(CryptanalysisError)
    async def cryptanalysis_error_handler(
        request: Request, exc: CryptanalysisError
    ) -> JSONResponse:
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "cryptobreaker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    run()
