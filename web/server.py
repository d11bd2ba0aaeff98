"""FastAPI backend for Whirlbird: scores, leaderboard, publishing."""

import sys
import asyncio
import json
from pathlib import Path
from typing import Any, Callable

# Ensure project root is importable
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402
from starlette.exceptions import HTTPException as StarletteHTTPException  # noqa: E402

from whirlbird.api.errors import (  # noqa: E402
    ApiError,
    InternalError,
    NotFound,
    PayloadTooLarge,
    UnsupportedMediaType,
    ValidationError,
)
from whirlbird.api.identity import StaticIdentity  # noqa: E402
from whirlbird.api.schemas import ErrorResponse  # noqa: E402
from whirlbird.api.service import RequestContext, ScoreService  # noqa: E402
from whirlbird.api.social import LocalSocialPoster  # noqa: E402
from whirlbird.config.loader import load_settings  # noqa: E402
from whirlbird.config.schema import Settings  # noqa: E402
from whirlbird.storage.registry import load_store  # noqa: E402

POST_HEADER = "x-whirlbird-post"
USER_HEADER = "x-whirlbird-user"

# POST routes that read a JSON body
JSON_ROUTES = frozenset({"/api/score", "/api/publish", "/api/comment"})

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}

ContextResolver = Callable[[Request], RequestContext]


def header_context(request: Request) -> RequestContext:
    """Read the game post id and the player's name from request headers."""
    return RequestContext(
        post_id=request.headers.get(POST_HEADER) or None,
        identity=StaticIdentity(request.headers.get(USER_HEADER)),
    )


def _error(exc: ApiError) -> JSONResponse:
    return JSONResponse(exc.to_envelope(), status_code=exc.status_code)


def create_app(
    service: ScoreService | None = None,
    *,
    settings: Settings | None = None,
    context_resolver: ContextResolver = header_context,
) -> FastAPI:
    settings = settings or (service.settings if service else load_settings())
    if service is None:
        service = ScoreService(load_store(settings), LocalSocialPoster(settings.public_url), settings)
    max_body = settings.api.max_body_bytes

    app = FastAPI(title="Whirlbird API")
    app.state.service = service

    # ── Middleware ──────────────────────────────────────────────────────

    @app.middleware("http")
    async def guard_json_bodies(request: Request, call_next):
        if request.method.upper() == "POST" and request.url.path in JSON_ROUTES:
            ct = request.headers.get("content-type", "")
            if "application/json" not in ct:
                return _error(UnsupportedMediaType())
            cl = request.headers.get("content-length")
            if cl and cl.isdigit() and int(cl) > max_body:
                return _error(PayloadTooLarge())
        return await call_next(request)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
        return response

    # ── Error envelopes ─────────────────────────────────────────────────

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return _error(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        # Wrong method on a known path is reported like an unknown route
        if exc.status_code in (404, 405):
            return _error(NotFound())
        return JSONResponse(
            ErrorResponse(message=str(exc.detail).lower()).model_dump(), status_code=exc.status_code
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        print(f"[api] Unhandled server error: {exc}", flush=True)
        return _error(InternalError())

    # ── Helpers ─────────────────────────────────────────────────────────

    async def read_json(request: Request) -> Any:
        raw = await request.body()
        if len(raw) > max_body:
            raise PayloadTooLarge()
        try:
            return json.loads(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            raise ValidationError("invalid JSON body") from exc

    async def run(route: str, func, *args, fallback: str) -> JSONResponse:
        """Run a service call off the event loop; every failure becomes an envelope."""
        try:
            result = await asyncio.to_thread(func, *args)
        except ApiError as exc:
            return _error(exc)
        except Exception as exc:
            print(f"[api] {route} error: {exc}", flush=True)
            return _error(InternalError(fallback))
        return JSONResponse(result.model_dump(by_alias=True))

    async def with_body(route: str, request: Request, func, fallback: str) -> JSONResponse:
        ctx = context_resolver(request)
        if not ctx.post_id:
            return _error(ValidationError("postId missing"))
        try:
            body = await read_json(request)
        except ApiError as exc:
            return _error(exc)
        return await run(route, func, ctx, body, fallback=fallback)

    # ── Routes ──────────────────────────────────────────────────────────

    @app.get("/api/init")
    async def init(request: Request):
        return await run("/init", service.init, context_resolver(request), fallback="init failed")

    @app.post("/api/score")
    async def submit_score(request: Request):
        return await with_body("/score", request, service.submit, "score submission failed")

    @app.get("/api/leaderboard")
    async def leaderboard(request: Request):
        return await run("/leaderboard", service.get_leaderboard, context_resolver(request),
                         fallback="leaderboard unavailable")

    @app.post("/api/publish")
    async def publish(request: Request):
        return await with_body("/publish", request, service.publish, "failed to publish post")

    @app.post("/api/comment")
    async def comment(request: Request):
        return await with_body("/comment", request, service.comment, "failed to post comment")

    return app


app = create_app()


# ── Main ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    uvicorn.run(app, host=_settings.server_host, port=_settings.server_port)
