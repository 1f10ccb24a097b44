"""
Response Caching Middleware
===========================

Transparent memoization of idempotent read endpoints.

PER-REQUEST STATE MACHINE:
--------------------------
1. Entry: non GET/HEAD requests pass through untouched
2. Key derivation: a key builder turns the request into a cache key
3. Lookup:
   - HIT: the stored payload is replayed, downstream logic never runs
   - MISS: downstream logic runs and its response is captured
4. Capture: only 2xx responses are stored; errors are never cached
5. Terminal: the response carries X-Cache (HIT/MISS) and X-Cache-Key

FAILURE SEMANTICS:
------------------
A caching malfunction never fails the request. Errors raised while
building the key, reading or writing the cache are logged and the request
proceeds as if caching were disabled for that call.

TWO WAYS TO ACTIVATE:
---------------------
1. Per route (preferred): decorate the endpoint and build the router with
   ``route_class=CachedRoute``:

       router = APIRouter(route_class=CachedRoute)

       @router.get("/categories")
       @categories_cache
       async def list_categories(): ...

2. App-wide: ``ResponseCacheMiddleware`` with path-prefix rules, for routes
   that cannot be decorated.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.middleware.base import BaseHTTPMiddleware

from gallery_cache.core.config.constants import (
    ARTWORKS_KEY_PREFIX,
    CATEGORIES_KEY,
    HEADER_CACHE_KEY,
    HEADER_CACHE_STATUS,
    HEADER_USER_ID,
    LONG_CACHE_TTL,
    MEDIUM_CACHE_TTL,
    RESPONSE_KEY_PREFIX,
    SHORT_CACHE_TTL,
    CacheStatus,
)
from gallery_cache.core.config.settings import Settings
from gallery_cache.core.interfaces.cache import MISS
from gallery_cache.core.logging.logger import get_logger, log_stage
from gallery_cache.infrastructure.cache.cache_manager import CacheManager
from gallery_cache.infrastructure.cache.keys import build_key, principal_token

logger = get_logger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD"})
CACHE_POLICY_ATTR = "__cache_policy__"

KeyBuilder = Callable[[Request], str]
CallNext = Callable[[Request], Awaitable[Response]]


# ============================================================================
# KEY BUILDERS
# ============================================================================


def default_cache_key(request: Request) -> str:
    """
    Key from method, normalized path and canonicalized query string.

    Query pairs are sorted so ``?b=2&a=1`` and ``?a=1&b=2`` share a key.
    Path, names and values are percent-encoded: the key stays ASCII (it is
    sent back in X-Cache-Key) and a value holding ``&`` or ``=`` cannot
    pass for a second parameter.

    Example:
        GET /api/artworks/?page=2&category=oil → api:GET:/api/artworks?category=oil&page=2
    """
    path = quote(request.url.path.rstrip("/") or "/", safe="/")
    pairs = sorted(request.query_params.multi_items())
    if pairs:
        path = f"{path}?{urlencode(pairs)}"
    return build_key(RESPONSE_KEY_PREFIX, request.method, path)


def request_identity(request: Request) -> str | None:
    """
    Identity of the caller, from (in order) ``request.state.user_id``, the
    X-User-ID header or the Authorization header.
    """
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return str(user_id)
    return request.headers.get(HEADER_USER_ID) or request.headers.get("authorization")


def principal_cache_key(request: Request) -> str:
    """Default key plus a hashed identity token, for per-user responses."""
    return build_key(default_cache_key(request), principal_token(request_identity(request)))


def categories_cache_key(request: Request) -> str:
    return CATEGORIES_KEY


def _encode_part(value: Any) -> str:
    return quote(str(value), safe="")


def _encode_filter(value: str | None, placeholder: str) -> str:
    """
    Encode a free-text filter, ``placeholder`` when absent.

    A supplied value that spells the placeholder (``?search=none``) filters
    on that text, so its first character is percent-escaped to keep it
    apart from the absent case.
    """
    if not value:
        return placeholder
    encoded = _encode_part(value)
    if encoded == placeholder:
        return f"%{ord(encoded[0]):02X}{encoded[1:]}"
    return encoded


def artworks_cache_key(request: Request) -> str:
    """
    Listing key from the pagination and filter parameters.

    Every part is percent-encoded, so a value holding ``:`` cannot shift
    the remaining parts.
    """
    params = request.query_params
    return build_key(
        ARTWORKS_KEY_PREFIX,
        _encode_part(params.get("page") or 1),
        _encode_part(params.get("limit") or 12),
        _encode_filter(params.get("category"), "all"),
        _encode_filter(params.get("search"), "none"),
        _encode_part(params.get("minPrice") or "0"),
        _encode_part(params.get("maxPrice") or "max"),
    )


# ============================================================================
# POLICY
# ============================================================================


@dataclass(frozen=True)
class CachePolicy:
    """
    How one endpoint is cached.

    Attributes:
        ttl: Lifetime in seconds (None: the cache manager's default TTL)
        key_builder: Request → key (None: ``default_cache_key``)
        ttl_setting: Settings field that overrides ``ttl`` when present
    """

    ttl: int | None = None
    key_builder: KeyBuilder | None = None
    ttl_setting: str | None = None

    def resolve_ttl(self, settings: Settings | None) -> int | None:
        if self.ttl_setting and settings is not None:
            return getattr(settings, self.ttl_setting, self.ttl)
        return self.ttl

    def build_key(self, request: Request) -> str:
        return (self.key_builder or default_cache_key)(request)


def cached(
    ttl: int | None = None,
    key_builder: KeyBuilder | None = None,
    ttl_setting: str | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Mark an endpoint as cacheable.

    The endpoint itself is returned unchanged (its signature stays visible to
    FastAPI); ``CachedRoute`` picks the policy up when the route is built.

    Args:
        ttl: Lifetime in seconds (default: CACHE_TTL_DEFAULT)
        key_builder: Custom request → key function
        ttl_setting: Settings field to read the TTL from at request time

    Example:
        @router.get("/artworks/{artwork_id}")
        @cached(ttl=300)
        async def get_artwork(artwork_id: int): ...
    """
    policy = CachePolicy(ttl=ttl, key_builder=key_builder, ttl_setting=ttl_setting)

    def decorator(endpoint: Callable[..., Any]) -> Callable[..., Any]:
        setattr(endpoint, CACHE_POLICY_ATTR, policy)
        return endpoint

    return decorator


# Presets
short_cache = cached(ttl=SHORT_CACHE_TTL, ttl_setting="CACHE_SHORT_TTL")
medium_cache = cached(ttl=MEDIUM_CACHE_TTL)
long_cache = cached(ttl=LONG_CACHE_TTL, ttl_setting="CACHE_LONG_TTL")
categories_cache = cached(ttl=LONG_CACHE_TTL, key_builder=categories_cache_key)
artworks_cache = cached(ttl=MEDIUM_CACHE_TTL, key_builder=artworks_cache_key)


# ============================================================================
# ENGINE
# ============================================================================


class ResponseCache:
    """
    Serves one request through the cache.

    Shared by ``CachedRoute`` and ``ResponseCacheMiddleware``.
    """

    def __init__(self, cache: CacheManager, settings: Settings | None = None):
        self._cache = cache
        self._settings = settings

    async def serve(self, request: Request, call_next: CallNext, policy: CachePolicy) -> Response:
        """
        Run the cache state machine for one request.

        STAGE-3.0: Response cache

        Args:
            request: Incoming request
            call_next: Downstream handler
            policy: Caching policy for this endpoint

        Returns:
            Replayed or freshly computed response
        """
        if request.method not in SAFE_METHODS:
            return await call_next(request)

        try:
            key = policy.build_key(request)
        except Exception as e:
            self._log_malfunction("key", e)
            return await call_next(request)

        try:
            result = await self._cache.lookup(key)
        except Exception as e:
            self._log_malfunction("lookup", e, key)
            result = MISS

        if result.hit:
            cached_response = self._restore(key, result.value)
            if cached_response is not None:
                log_stage(logger, "3.1", "Response cache HIT", level="debug", cache_key=key)
                return self._tag(cached_response, CacheStatus.HIT, key)

        log_stage(logger, "3.1", "Response cache MISS", level="debug", cache_key=key)
        response = await call_next(request)

        if 200 <= response.status_code < 300:
            response = await self._store(key, response, policy)

        return self._tag(response, CacheStatus.MISS, key)

    @classmethod
    def _tag(cls, response: Response, status: CacheStatus, key: str) -> Response:
        """Set X-Cache and X-Cache-Key; a key headers cannot carry is left out."""
        response.headers[HEADER_CACHE_STATUS] = status.value
        try:
            response.headers[HEADER_CACHE_KEY] = key
        except UnicodeEncodeError as e:
            cls._log_malfunction("tag", e, key)
        return response

    async def _store(self, key: str, response: Response, policy: CachePolicy) -> Response:
        """
        Capture a successful response body into the cache.

        Returns the response to send on: a streamed body is buffered, so
        the response is rebuilt around the captured bytes.
        """
        body = getattr(response, "body", None)
        if body is None:
            if response.headers.get("content-type", "").startswith("text/event-stream"):
                return response
            body = b"".join([chunk async for chunk in response.body_iterator])
            response = Response(
                content=body,
                status_code=response.status_code,
                headers=dict(response.headers),
            )

        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError:
            log_stage(logger, "3.2", "Response body not cacheable", level="debug", cache_key=key)
            return response

        payload = {
            "status_code": response.status_code,
            "media_type": response.headers.get("content-type"),
            "body": text,
        }
        ttl = policy.resolve_ttl(self._settings)

        try:
            await self._cache.set(key, payload, ttl)
            log_stage(logger, "3.2", "Response cached", level="debug", cache_key=key, ttl=ttl)
        except Exception as e:
            self._log_malfunction("store", e, key)

        return response

    def _restore(self, key: str, payload: Any) -> Response | None:
        try:
            return Response(
                content=payload["body"],
                status_code=payload["status_code"],
                media_type=payload.get("media_type"),
            )
        except (KeyError, TypeError, AttributeError) as e:
            self._log_malfunction("restore", e, key)
            return None

    @staticmethod
    def _log_malfunction(operation: str, error: Exception, key: str | None = None) -> None:
        logger.warning(
            "Response cache malfunction, bypassing cache",
            stage="3.0",
            operation=operation,
            cache_key=key,
            error_type=error.__class__.__name__,
            error=str(error),
        )


# ============================================================================
# ROUTE CLASS
# ============================================================================


class CachedRoute(APIRoute):
    """
    APIRoute that honours ``@cached`` policies.

    Undecorated endpoints get the stock handler. Decorated endpoints are
    wrapped with the ResponseCache engine, using the CacheManager stored on
    ``app.state`` (no cache manager: the endpoint runs uncached).
    """

    def get_route_handler(self) -> Callable[[Request], Awaitable[Response]]:
        handler = super().get_route_handler()
        policy: CachePolicy | None = getattr(self.endpoint, CACHE_POLICY_ATTR, None)
        if policy is None:
            return handler

        async def cached_route_handler(request: Request) -> Response:
            cache = getattr(request.app.state, "cache_manager", None)
            if cache is None:
                return await handler(request)
            engine = ResponseCache(cache, getattr(request.app.state, "settings", None))
            return await engine.serve(request, handler, policy)

        return cached_route_handler


# ============================================================================
# APP-WIDE MIDDLEWARE
# ============================================================================


@dataclass(frozen=True)
class CacheRule:
    """Cache every safe request whose path starts with ``path_prefix``."""

    path_prefix: str
    policy: CachePolicy = CachePolicy()

    def matches(self, path: str) -> bool:
        return path.startswith(self.path_prefix)


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    """
    Path-rule based response caching for routes that cannot be decorated.

    Rules are checked in order; the first matching prefix wins. Requests
    matching no rule pass through untouched.

    Usage:
        app.add_middleware(
            ResponseCacheMiddleware,
            rules=[CacheRule("/api/legacy/catalog", CachePolicy(ttl=60))],
        )
    """

    def __init__(self, app, rules: list[CacheRule], cache_manager: CacheManager | None = None):
        super().__init__(app)
        self.rules = list(rules)
        self.cache_manager = cache_manager

    def _match(self, path: str) -> CacheRule | None:
        for rule in self.rules:
            if rule.matches(path):
                return rule
        return None

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rule = self._match(request.url.path)
        cache = self.cache_manager or getattr(request.app.state, "cache_manager", None)
        if rule is None or cache is None:
            return await call_next(request)

        engine = ResponseCache(cache, getattr(request.app.state, "settings", None))
        return await engine.serve(request, call_next, rule.policy)
