from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.companies import CompanyService, non_empty, params_from_query, utc_timestamp
from api.config import cors_origins
from cache.config import cache_enabled
from cache.keys import canonical_body_key, canonical_request_key
from cache.response_cache import ResponseCache
from engine.config import engine_name
from engine.factory import build_store
from engine.types import RecordStore
from errors import FieldError, QueryCancelled, StoreError, ValidationError
from geo.resolver import CoordinateResolver
from presets.registry import list_presets

ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]


def preflight_headers(origins: list[str]) -> dict[str, str]:
    """
    Answer for a bare OPTIONS without CORS request headers. A wildcard origin is
    only advertised when every origin is allowed.
    """
    headers = {
        "Access-Control-Allow-Methods": ", ".join(ALLOWED_METHODS),
        "Access-Control-Allow-Headers": "Content-Type",
    }
    if "*" in origins:
        headers["Access-Control-Allow-Origin"] = "*"
    return headers


def _service(request: Request) -> CompanyService:
    return request.app.state.service


def create_app(
    store: RecordStore | None = None,
    *,
    cache: ResponseCache | None = None,
    resolver: CoordinateResolver | None = None,
) -> FastAPI:
    """
    Build the HTTP app around one record store and one response cache.

    Defaults come from ATLAS_* environment variables.
    """
    if store is None:
        store = build_store(engine_name())
    if cache is None and cache_enabled():
        cache = ResponseCache.from_env()

    app = FastAPI(title="company-atlas")
    app.state.service = CompanyService(store, cache=cache, resolver=resolver)

    origins = cors_origins()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentialed requests cannot be answered with a wildcard origin.
        allow_credentials="*" not in origins,
        allow_methods=ALLOWED_METHODS,
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid filters",
                "details": [e.to_dict() for e in exc.errors],
                "timestamp": utc_timestamp(),
            },
        )

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        return JSONResponse(
            status_code=500,
            content={
                "error": "Failed to fetch companies",
                "details": str(exc),
                "timestamp": utc_timestamp(),
            },
        )

    @app.exception_handler(QueryCancelled)
    async def _cancelled(request: Request, exc: QueryCancelled):
        # Nobody is listening; the status only shows up in access logs.
        return JSONResponse(
            status_code=499,
            content={"error": "Client closed request", "timestamp": utc_timestamp()},
        )

    @app.get("/companies")
    async def list_companies(request: Request):
        svc = _service(request)
        return await svc.respond(
            request,
            params_from_query(request.query_params),
            cache_key=canonical_request_key(request.url.path, request.query_params.multi_items()),
            build=svc.build_list,
            has_results=non_empty("data"),
        )

    @app.post("/companies")
    async def query_companies(request: Request):
        svc = _service(request)
        try:
            body: Any = await request.json() if await request.body() else {}
        except ValueError:
            raise ValidationError([FieldError("body", "must be valid JSON")])
        if not isinstance(body, dict):
            raise ValidationError([FieldError("body", "must be a JSON object")])
        return await svc.respond(
            request,
            body,
            cache_key=canonical_body_key(request.url.path, body),
            build=svc.build_list,
            has_results=non_empty("data"),
        )

    @app.options("/companies")
    def companies_preflight():
        return Response(status_code=200, headers=preflight_headers(origins))

    @app.get("/companies/heatmap")
    async def companies_heatmap(request: Request):
        svc = _service(request)
        return await svc.respond(
            request,
            params_from_query(request.query_params),
            cache_key=canonical_request_key(request.url.path, request.query_params.multi_items()),
            build=svc.build_heatmap,
            has_results=non_empty("regions"),
        )

    @app.get("/companies/markers")
    async def companies_markers(request: Request):
        svc = _service(request)
        return await svc.respond(
            request,
            params_from_query(request.query_params),
            cache_key=canonical_request_key(request.url.path, request.query_params.multi_items()),
            build=svc.build_markers,
            has_results=non_empty("markers"),
        )

    @app.get("/companies/summary")
    async def companies_summary(request: Request):
        svc = _service(request)
        return await svc.respond(
            request,
            params_from_query(request.query_params),
            cache_key=canonical_request_key(request.url.path, request.query_params.multi_items()),
            build=svc.build_summary,
            has_results=lambda payload: payload["data"]["totalCompanies"] > 0,
        )

    @app.get("/companies/filters")
    def companies_filters(request: Request):
        return _service(request).filter_options()

    @app.get("/datasets")
    def datasets():
        return [p.model_dump() for p in list_presets()]

    @app.get("/health")
    def health(request: Request):
        return _service(request).health()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
