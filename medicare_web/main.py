from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from typing import Optional
import time
import logging
import os

import httpx

from .api.deps import get_session_store
from .api.routes.admin import router as admin_router
from .api.routes.auth import redirect_to_landing, router as auth_router
from .api.routes.doctor import router as doctor_router
from .api.routes.notifications import router as notifications_router
from .api.routes.patient import router as patient_router
from .core.config import Settings, settings as default_settings
from .core.exceptions import (
    ApiError, AuthError, NetworkError, RedirectRequired, SessionLoading, ValidationError,
)
from .core.http import ApiClient
from .core.security import LOGIN_PATH
from .services.auth_service import SessionStore
from .services.notification_service import NotificationPoller
from .services.storage_service import ClientStorage

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

def redirect_to(request: Request, location: str) -> RedirectResponse:
    """Redirect a page view; other methods become a GET of the target."""
    if request.method in ("GET", "HEAD"):
        return RedirectResponse(location, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return RedirectResponse(location, status_code=status.HTTP_303_SEE_OTHER)

def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    storage_url: Optional[str] = None,
) -> FastAPI:
    """Build the client application.

    ``transport`` replaces the network layer of the backend client and
    ``storage_url`` the durable storage location; both exist for tests.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.APP_NAME} against {settings.API_URL}")

        api = ApiClient(
            base_url=settings.API_URL,
            timeout=settings.REQUEST_TIMEOUT,
            auth_header=settings.AUTH_HEADER,
            transport=transport,
        )
        storage = ClientStorage(storage_url or settings.STORAGE_URL)
        store = SessionStore(api, storage)
        poller = NotificationPoller(api, store, interval=settings.NOTIFICATION_POLL_INTERVAL)
        poller.attach()

        app.state.api_client = api
        app.state.client_storage = storage
        app.state.session_store = store
        app.state.notification_poller = poller

        # Routes answer 503 until this returns
        await store.bootstrap()
        if store.is_authenticated:
            poller.start()
        logger.info("Application startup complete")

        try:
            yield
        finally:
            logger.info(f"Shutting down {settings.APP_NAME}...")
            await poller.aclose()
            await api.aclose()
            storage.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        description="Browser-side client for the MediCare+ hospital backend",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Middleware setup
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Only add TrustedHostMiddleware in production, not in testing
    if not os.getenv("TESTING"):
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=["localhost", "127.0.0.1", "*.localhost", "testserver"]
        )

    # Custom middleware for request logging and timing
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

    # Exception handlers
    @app.exception_handler(RedirectRequired)
    async def redirect_handler(request: Request, exc: RedirectRequired):
        return redirect_to(request, exc.location)

    @app.exception_handler(SessionLoading)
    async def loading_handler(request: Request, exc: SessionLoading):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "loading"},
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={"error": "Validation Error", "message": exc.message, "field": exc.field},
        )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        # The backend rejected our token mid-session
        logger.warning(f"Backend rejected the session on {request.url.path}: {exc.message}")
        get_session_store(request).logout()
        return redirect_to(request, LOGIN_PATH)

    @app.exception_handler(NetworkError)
    async def network_error_handler(request: Request, exc: NetworkError):
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Bad Gateway", "message": exc.message},
        )

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(
            status_code=exc.status_code or status.HTTP_502_BAD_GATEWAY,
            content={"error": "Backend Error", "message": exc.message},
        )

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not Found",
                "message": "The requested resource was not found",
                "path": str(request.url.path)
            }
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"Internal server error: {str(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": "An unexpected error occurred"
            }
        )

    # Health check endpoint
    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        store = get_session_store(request)
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": settings.VERSION,
            "session": "loading" if store.loading else ("active" if store.is_authenticated else "none"),
        }

    # Client info endpoint
    @app.get("/api/info")
    async def api_info():
        """Client information endpoint."""
        return {
            "name": settings.APP_NAME,
            "version": settings.VERSION,
            "backend": settings.API_URL,
            "endpoints": {
                "session": "/session",
                "notifications": "/notifications",
                "admin": "/admin",
                "doctor": "/doctor",
                "patient": "/patient",
                "docs": "/docs",
            }
        }

    # Include routers
    app.include_router(auth_router)
    app.include_router(notifications_router)
    app.include_router(admin_router)
    app.include_router(doctor_router)
    app.include_router(patient_router)

    # Unmatched paths land on the user's dashboard, or the login screen
    @app.get("/{path:path}", include_in_schema=False)
    async def fallback(path: str, request: Request):
        redirect_to_landing(get_session_store(request))

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medicare_web.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.DEBUG,
        log_level="info"
    )
