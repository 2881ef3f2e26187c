import json
import logging
import time
from typing import Dict, Optional
import pandas as pd
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from .config import Settings, load_settings
from .models import LeadsRequest, LeadsResponse
from .scoring import compute_score
from .weights import Unauthorized, Unavailable, WeightProvider


logger = logging.getLogger("app")


CORS_ALLOW_METHODS = "GET, POST, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization"


def error_response(status: int, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": message}, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid JSON"


def create_app(settings: Optional[Settings] = None, provider: Optional[WeightProvider] = None) -> FastAPI:
    settings = settings or load_settings()
    provider = provider or WeightProvider(settings.config_api_url, timeout=settings.config_api_timeout)
    allowed_origins = set(settings.allowed_origins)

    app = FastAPI(title="Lead Scoring API")
    app.state.settings = settings
    app.state.provider = provider

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        rid = request.headers.get("X-Request-ID") or str(int(time.time() * 1000))
        start = time.time()
        response: Response
        try:
            response = await call_next(request)
        finally:
            duration_ms = int((time.time() - start) * 1000)
            logger.info(json.dumps({
                "request_id": rid,
                "endpoint": request.url.path,
                "method": request.method,
                "status": getattr(response, "status_code", 0) if "response" in locals() else 500,
                "latency_ms": duration_ms,
            }))
        response.headers["X-Request-ID"] = rid
        return response

    # Registered last so it runs first and answers preflights before routing.
    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        if request.method == "OPTIONS":
            response: Response = Response(status_code=204)
        else:
            response = await call_next(request)
        origin = request.headers.get("Origin")
        if origin and (origin in allowed_origins or "*" in allowed_origins):
            response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        response.headers["Access-Control-Allow-Credentials"] = "true"
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, "Invalid request body: " + _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "healthy", "service": "scoring-service"}

    @app.post("/leads", response_model=LeadsResponse)
    def leads_endpoint(req: LeadsRequest):
        if not req.api_key or not req.email:
            return error_response(401, "api_key and email required")
        if not req.leads:
            return error_response(400, "No leads provided")
        identity = req.client_id or req.email
        try:
            config = app.state.provider.fetch(identity, req.api_key)
        except Unauthorized as e:
            logger.warning(json.dumps({"event": "config_fetch_failed", "identity": identity, "error": str(e)}))
            return error_response(401, "Invalid API key")
        except Unavailable as e:
            logger.warning(json.dumps({"event": "config_fetch_failed", "identity": identity, "error": str(e)}))
            return error_response(500, "Failed to fetch scoring config")
        now = pd.Timestamp.now(tz="UTC")
        scores = [compute_score(lead, config.weights, now=now) for lead in req.leads]
        return LeadsResponse(scores=scores, method=config.method, client_id=config.client_id)

    return app


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format="%(message)s")

