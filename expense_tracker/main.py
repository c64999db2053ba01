"""Main FastAPI application entry point."""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from expense_tracker.api.deps import rate_limit
from expense_tracker.api.routes import router
from expense_tracker.config import Settings
from expense_tracker.database import Database
from expense_tracker.errors import ApiError, InternalError
from expense_tracker.services.rate_limit import ClientRateLimiter

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie", "form"}

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; img-src 'self' data:; object-src 'none'; "
        "frame-ancestors 'self'; base-uri 'self'; form-action 'self'"
    ),
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
}


def _field_errors(errors) -> list:
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if str(part) not in _LOCATION_PREFIXES]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        details.append({"field": ".".join(loc), "message": message})
    return details


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Validation error",
                "message": "Invalid request data",
                "details": _field_errors(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            body = {"error": "Route not found", "message": f"No route for {request.url.path}"}
        else:
            body = {"error": str(exc.detail), "message": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # Full detail stays in the server log; the caller gets a generic message
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=InternalError().to_dict())


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Build the application around an explicitly constructed database handle."""
    settings = settings or Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    database = database or Database(settings.database_url)
    database.create_all()
    os.makedirs(settings.upload_dir, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Expense tracker started")
        yield
        database.dispose()

    app = FastAPI(
        title="Expense Tracker",
        description="Role-based expense submission, approval, analytics and audit trail.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.rate_limiter = ClientRateLimiter(
        settings.rate_limit_max_requests, max(settings.rate_limit_window_ms // 1000, 1)
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        # Receipts are embedded by the frontend on another origin
        if request.url.path.startswith("/uploads/"):
            response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"
        else:
            response.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        return response

    register_exception_handlers(app)

    app.include_router(router, prefix="/api", dependencies=[Depends(rate_limit)])
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    @app.get("/health")
    def health_check():
        return {"status": "OK", "timestamp": datetime.utcnow().isoformat()}

    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
