"""REST API for Odoo Lens.

Proxies faculty, permission, model and query lookups to Odoo over
JSON-RPC and serves the permission risk analysis.
Start with: python main.py serve --port 8000
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from config.settings import settings
from core.exceptions import OdooAPIError, OdooLensError, SessionExpiredError, ValidationError
from core.permissions import group_name, summarize_permissions
from integrations.odoo_client import OdooClient
from models.odoo import DataQueryParams
from models.permissions import AnalysisRequest, GroupReview
from services.permission_analysis import (NO_PERMISSIONS_MESSAGE, NarrativeFailed,
                                          PermissionAnalysisService)
from services.review_service import PermissionReviewService


def get_odoo_client(
    x_odoo_session_key: Optional[str] = Header(default=None),
) -> OdooClient:
    """Build a client for the caller's session, falling back to ODOO_SESSION_ID."""
    client = OdooClient(session_id=x_odoo_session_key)
    if not client.mock and not client.session_id:
        raise SessionExpiredError("Session ID not configured")
    return client


def get_analysis_service() -> PermissionAnalysisService:
    return PermissionAnalysisService()


def error_body(exc: OdooLensError) -> dict:
    body = {"error": exc.message}
    if isinstance(exc, OdooAPIError) and exc.details is not None:
        body["details"] = exc.details
    if isinstance(exc, NarrativeFailed):
        body.update(exc.assessment.model_dump(mode="json", by_alias=True))
    return body


def invalid_request_message(request: Request, exc: RequestValidationError) -> str:
    errors = exc.errors()
    if request.url.path == "/api/analyze-permissions" and any(
            "groupPermissionsData" in err.get("loc", ()) for err in errors):
        return NO_PERMISSIONS_MESSAGE
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    return f"{field}: {first['msg']}" if field else first["msg"]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI application instance.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="Odoo faculty, permission and model explorer with AI risk analysis",
        version=settings.VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(OdooLensError)
    async def lens_error(request: Request, exc: OdooLensError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
        return JSONResponse(error_body(exc), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = invalid_request_message(request, exc)
        logger.warning(f"{request.method} {request.url.path} → 400: {message}")
        return JSONResponse({"error": message}, status_code=400)

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "version": settings.VERSION, "mock": settings.MOCK_MODE}

    @app.get("/api/odoo/search-faculty")
    def search_faculty(query: str = "", limit: int = 10,
                       client: OdooClient = Depends(get_odoo_client)) -> list[dict]:
        return [f.model_dump(mode="json") for f in client.search_faculty(query, limit)]

    @app.get("/api/odoo/faculty/{faculty_id}/review")
    def review_faculty(faculty_id: int,
                       client: OdooClient = Depends(get_odoo_client)) -> dict:
        review = PermissionReviewService(client).review_faculty(faculty_id)
        return review.model_dump(mode="json", by_alias=True)

    @app.get("/api/odoo/groups")
    def search_groups(query: str = "", limit: int = 20,
                      client: OdooClient = Depends(get_odoo_client)) -> list[dict]:
        return [g.model_dump(mode="json") for g in client.search_groups(query, limit)]

    @app.get("/api/odoo/permissions")
    def permissions(group_id: Optional[int] = None,
                    client: OdooClient = Depends(get_odoo_client)) -> list[dict]:
        if group_id is None:
            raise ValidationError("group_id is required")
        return [p.model_dump(mode="json") for p in client.get_group_permissions(group_id)]

    @app.get("/api/odoo/review-permissions")
    def review_permissions(group_id: Optional[int] = None,
                           client: OdooClient = Depends(get_odoo_client)) -> dict:
        if group_id is None:
            raise ValidationError("group_id is required")
        rows = client.get_group_permissions(group_id)
        review = GroupReview(
            group_id=group_id,
            group_name=group_name(group_id, client.group_names([group_id])),
            permissions=rows,
            summary=summarize_permissions(rows),
        )
        return review.model_dump(mode="json", by_alias=True)

    @app.get("/api/odoo/explore-model")
    def explore_model(model_id: Optional[str] = None,
                      client: OdooClient = Depends(get_odoo_client)) -> dict:
        if not model_id:
            raise ValidationError("model_id is required")
        return {f.name: f.model_dump(mode="json", exclude={"name"})
                for f in client.get_model_fields(model_id)}

    @app.post("/api/odoo/data-query")
    def data_query(params: DataQueryParams,
                   client: OdooClient = Depends(get_odoo_client)) -> dict:
        return client.data_query(params).model_dump(mode="json")

    @app.post("/api/analyze-permissions")
    def analyze_permissions(
        request: AnalysisRequest,
        service: PermissionAnalysisService = Depends(get_analysis_service),
    ) -> dict:
        result = service.analyze(request.group_permissions_data, request.format_options)
        return result.model_dump(mode="json", by_alias=True)

    return app
