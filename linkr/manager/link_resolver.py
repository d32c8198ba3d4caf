"""
LinkResolver module for Linkr.

Responsibilities:
    - Validate creation requests (URL, custom code, expiry) before any store access
    - Guarantee code uniqueness through the store's atomic insert
    - Retry generated codes on conflict, up to a fixed bound
    - Enforce expiration on lookup
    - Record a visit for each successful redirect (best effort)

Design notes:
    - There is never a separate "does this code exist?" read before inserting;
      the store's insert_link is the single arbiter of uniqueness.
    - Custom codes that conflict surface as CodeTaken. They never fall back to
      a generated code.
    - Expired links stay stored and remain visible to stats. They simply stop
      resolving.
    - A failing visit log never fails a redirect; the error is logged.
"""

import logging
import re
from datetime import datetime
from typing import Callable, Optional

from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from linkr.analytics.base import BaseVisitLog
from linkr.config import settings
from linkr.errors import (
    CodeTaken,
    Expired,
    GenerationExhausted,
    InvalidCodeFormat,
    InvalidExpiry,
    InvalidUrl,
    NotFound,
)
from linkr.models import Link, Visit, as_utc, utcnow
from linkr.storage.base import BaseStorage
from .strategies import BaseStrategy, get_strategy_from_config

log = logging.getLogger("linkr.resolver")

CustomCodePattern = re.compile(r"^[0-9A-Za-z_-]{3,32}$")
MAX_URL_LENGTH = 2048
_HTTP_URL = TypeAdapter(AnyHttpUrl)

# Single path segments already routed by the web layer.
RESERVED_CODES = frozenset({"shorten", "stats", "qr", "health", "docs", "redoc"})


class LinkResolver:
    """Coordinates creation, lookup and redirect rules for links."""

    def __init__(
        self,
        storage: BaseStorage,
        visit_log: Optional[BaseVisitLog] = None,
        code_strategy: Optional[BaseStrategy] = None,
        max_attempts: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            storage (BaseStorage): Link store.
            visit_log (Optional[BaseVisitLog]): Where redirects are recorded.
            code_strategy (Optional[BaseStrategy]): Candidate generator
                (defaults to the configured strategy).
            max_attempts (Optional[int]): Insert attempts for generated codes.
            clock (Optional[Callable]): Returns the current UTC time.
        """
        self.storage = storage
        self.visit_log = visit_log
        self.code_strategy = code_strategy or get_strategy_from_config()
        self.max_attempts = max_attempts if max_attempts is not None else settings.MAX_GENERATION_ATTEMPTS
        self.clock = clock or utcnow

    # ---------------------------------------------------------------------
    # Validation Helpers
    # ---------------------------------------------------------------------
    def _validate_url(self, url: str) -> None:
        """
        Validate that a URL is an absolute http/https URL with a host.

        Raises:
            InvalidUrl: If the URL is empty, too long or malformed.
        """
        if not url or not isinstance(url, str):
            raise InvalidUrl("URL is required")
        if len(url) > MAX_URL_LENGTH:
            raise InvalidUrl(f"URL is too long (max {MAX_URL_LENGTH} characters)")
        if any(ch.isspace() or not ch.isprintable() for ch in url):
            raise InvalidUrl("URL must not contain whitespace or control characters")
        scheme, sep, rest = url.partition("://")
        if not sep or scheme.lower() not in {"http", "https"}:
            raise InvalidUrl("URL must use http or https")
        # The URL parser silently drops extra slashes, so "https:///path" would gain a host.
        if not rest or rest[0] in "/?#":
            raise InvalidUrl("URL must include a host")
        try:
            _HTTP_URL.validate_python(url)
        except ValidationError:
            raise InvalidUrl("Invalid URL format") from None

    def _validate_custom_code(self, code: str) -> None:
        """
        Validate custom code characters, length and reserved words.

        Raises:
            InvalidCodeFormat: If the code cannot be used as a path segment.
        """
        if not CustomCodePattern.match(code):
            raise InvalidCodeFormat(
                "Custom code must be 3-32 characters of 0-9, a-z, A-Z, '-' or '_'"
            )
        if code.lower() in RESERVED_CODES:
            raise InvalidCodeFormat(f"'{code}' is reserved")

    def _validate_expiry(self, expires_at: Optional[datetime], now: datetime) -> Optional[datetime]:
        if expires_at is None:
            return None
        expires_at = as_utc(expires_at)
        if expires_at <= now:
            raise InvalidExpiry()
        return expires_at

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    async def create(
        self,
        original_url: str,
        custom_code: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Link:
        """
        Create a link for `original_url`, optionally under a caller-chosen code.

        Rules:
            - URL, custom code and expiry are validated before touching storage.
            - Custom code: one insert attempt; a conflict raises CodeTaken.
            - Generated code: insert, retrying with a new candidate after a
              conflict or a reserved word, up to `max_attempts` times, then GenerationExhausted.

        Returns:
            Link: The persisted link.

        Raises:
            InvalidUrl, InvalidCodeFormat, InvalidExpiry, CodeTaken,
            GenerationExhausted, StorageFailure
        """
        self._validate_url(original_url)
        if custom_code is not None:
            self._validate_custom_code(custom_code)
        now = as_utc(self.clock())
        expires_at = self._validate_expiry(expires_at, now)

        if custom_code is not None:
            link = Link(custom_code, original_url, now, expires_at)
            if not await self.storage.insert_link(link):
                log.info("Custom code already taken: %s", custom_code)
                raise CodeTaken(f"Short code '{custom_code}' already exists")
            log.info("Created link %s -> %s", link.code, original_url)
            return link

        for attempt in range(self.max_attempts):
            candidate = self.code_strategy.generate()
            if candidate.lower() in RESERVED_CODES:
                log.info("Skipping reserved candidate %s (attempt %d/%d)", candidate, attempt + 1, self.max_attempts)
                continue
            link = Link(candidate, original_url, now, expires_at)
            if await self.storage.insert_link(link):
                log.info("Created link %s -> %s", link.code, original_url)
                return link
            log.warning("Code collision on %s (attempt %d/%d)", candidate, attempt + 1, self.max_attempts)

        log.error("Gave up generating a code after %d attempts", self.max_attempts)
        raise GenerationExhausted()

    async def resolve(self, code: str) -> Link:
        """
        Look up an active link.

        Raises:
            NotFound: If no link exists under `code`.
            Expired: If the link exists but its expiry has passed.
        """
        link = await self.storage.get_link(code)
        if link is None:
            raise NotFound()
        if link.is_expired(self.clock()):
            log.info("Rejected expired link %s", code)
            raise Expired()
        return link

    async def redirect(
        self,
        code: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Link:
        """
        Resolve `code` and record a visit.

        The visit write is awaited but best effort: any failure is logged and
        the resolved link is still returned.
        """
        link = await self.resolve(code)
        if self.visit_log is not None:
            visit = Visit(
                code=link.code,
                visited_at=as_utc(self.clock()),
                ip_address=ip_address,
                user_agent=user_agent,
            )
            try:
                await self.visit_log.record_visit(visit)
            except Exception:
                log.exception("Failed to record visit for %s", link.code)
        return link
