"""
Main API module for Linkr.

Responsibilities:
    - Expose REST endpoints for creating short links, redirecting and stats
    - Record a visit (client IP, user agent, timestamp) on every redirect
    - Render short URLs as QR images (segno SVG by default, injectable)
    - Map core errors to stable HTTP status codes and JSON bodies

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory link store and visit log by default; Postgres via env config.
    - LinkResolver owns validation, uniqueness and expiry rules; this module
      only translates HTTP to resolver calls and back.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Callable, Dict, List, Optional, Tuple

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from linkr.analytics.base import BaseVisitLog
from linkr.analytics.stats import StatsAggregator
from linkr.config import settings
from linkr.errors import LinkError, StorageFailure
from linkr.manager.link_resolver import LinkResolver
from linkr.manager.strategies import BaseStrategy
from linkr.models import Link
from linkr.qr import render_svg
from linkr.storage.base import BaseStorage
from linkr.storage.storage_factory import get_storage, get_visit_log

# (short_url) -> (image bytes, media type); see linkr.qr.render_svg
QRRenderer = Callable[[str], Tuple[bytes, str]]

STATUS_BY_KIND: Dict[str, int] = {
    "invalid_url": 422,
    "invalid_code_format": 422,
    "invalid_expiry": 422,
    "invalid_request": 422,
    "code_taken": 409,
    "generation_exhausted": 500,
    "not_found": 404,
    "expired": 410,
    "storage_failure": 500,
}


class ShortenRequest(BaseModel):
    """Request payload for creating a new short link."""
    url: str
    custom_code: Optional[str] = None
    expires_at: Optional[datetime] = None


class ShortenResponse(BaseModel):
    code: str
    short_url: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None


class VisitOut(BaseModel):
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    visited_at: datetime


class StatsResponse(BaseModel):
    code: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    visit_count: int
    visits: List[VisitOut]


def _client_ip(request: Request) -> Optional[str]:
    """
    First entry of X-Forwarded-For when present, else the connection peer.

    Args:
        request (Request): Incoming FastAPI request.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    return request.client.host if request.client else None


def create_app(
    storage: Optional[BaseStorage] = None,
    visit_log: Optional[BaseVisitLog] = None,
    code_strategy: Optional[BaseStrategy] = None,
    qr_renderer: Optional[QRRenderer] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage: Link store; chosen from LINKR_STORAGE_BACKEND when omitted.
        visit_log: Visit log; the one attached to `storage` when omitted, else
            chosen from LINKR_STORAGE_BACKEND.
        code_strategy: Code generator; chosen from LINKR_CODE_STRATEGY when omitted.
        qr_renderer: Draws QR images for /qr/{code}; segno SVG when omitted.
        clock: Current-time source (UTC), mainly for tests.

    Returns:
        FastAPI: A fully configured application with isolated state.
    """
    log = logging.getLogger("linkr")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    if visit_log is None and storage is not None:
        visit_log = storage.visit_log
    if visit_log is None:
        visit_log = get_visit_log()
    if storage is None:
        storage = get_storage(visit_log=visit_log)
    elif storage.visit_log is None:
        storage.visit_log = visit_log

    resolver = LinkResolver(
        storage=storage,
        visit_log=visit_log,
        code_strategy=code_strategy,
        clock=clock,
    )
    stats = StatsAggregator(storage=storage, visit_log=visit_log)
    render_qr = qr_renderer or render_svg

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        ensure_schema = getattr(storage, "ensure_schema", None)
        if ensure_schema is not None and settings.INIT_SCHEMA:
            await ensure_schema()
        log.info("Linkr started (storage=%s)", type(storage).__name__)
        yield
        log.info("Linkr stopped")

    app = FastAPI(
        title="Linkr",
        description="URL shortener with expiring links, custom aliases and visit stats",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.resolver = resolver
    app.state.stats = stats

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----------------------------------------------------------------
    # Error mapping
    # ----------------------------------------------------------------
    @app.exception_handler(LinkError)
    async def link_error_handler(request: Request, exc: LinkError) -> JSONResponse:
        status = STATUS_BY_KIND.get(exc.kind, 500)
        if isinstance(exc, StorageFailure):
            log.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status,
            content={"error": {"kind": exc.kind, "message": exc.message}},
        )

    @app.exception_handler(RequestValidationError)
    async def request_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Report field and reason only; the rejected input is not echoed back.
        problems = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            reason = err.get("msg", "invalid value")
            problems.append(f"{field}: {reason}" if field else reason)
        return JSONResponse(
            status_code=STATUS_BY_KIND["invalid_request"],
            content={"error": {"kind": "invalid_request", "message": "; ".join(problems) or "Invalid request"}},
        )

    def _short_url(request: Request, code: str) -> str:
        if settings.BASE_URL:
            return f"{settings.BASE_URL}/{code}"
        return str(request.url_for("redirect_link", code=code))

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/shorten", status_code=201, response_model=ShortenResponse)
    async def shorten(req: ShortenRequest, request: Request) -> ShortenResponse:
        """
        Create a short link.

        Raises:
            InvalidUrl / InvalidCodeFormat / InvalidExpiry -> 422
            CodeTaken -> 409
            GenerationExhausted / StorageFailure -> 500
        """
        link = await resolver.create(req.url, req.custom_code, req.expires_at)
        return ShortenResponse(
            code=link.code,
            short_url=_short_url(request, link.code),
            original_url=link.original_url,
            created_at=link.created_at,
            expires_at=link.expires_at,
        )

    @app.get("/stats/{code}", response_model=StatsResponse)
    async def link_stats(code: str) -> StatsResponse:
        """Visit statistics; available for expired links too."""
        result = await stats.get_stats(code)
        link = result.link
        return StatsResponse(
            code=link.code,
            original_url=link.original_url,
            created_at=link.created_at,
            expires_at=link.expires_at,
            visit_count=result.visit_count,
            visits=[
                VisitOut(ip_address=v.ip_address, user_agent=v.user_agent, visited_at=v.visited_at)
                for v in result.visits
            ],
        )

    @app.get("/qr/{code}")
    async def qr_code(code: str, request: Request) -> Response:
        """Render a QR image of the short URL. Does not record a visit."""
        link: Link = await resolver.resolve(code)
        content, media_type = render_qr(_short_url(request, link.code))
        return Response(content=content, media_type=media_type)

    @app.get("/{code}")
    async def redirect_link(code: str, request: Request) -> Response:
        """Redirect to the original URL and record the visit."""
        link = await resolver.redirect(
            code,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        return RedirectResponse(url=link.original_url, status_code=302)

    return app


# `uvicorn main:app` and `from main import app` continue to work.
app = create_app()