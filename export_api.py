"""
export_api.py - FastAPI HTTP layer for the receipt export engine.

Endpoints:
  - GET  /health
  - POST /export/validate   readiness report for a batch of receipts
  - POST /export-csv        accounting import CSV as a file download

Request body for both POST endpoints:
    {"receipts": [...], "defaults": {...}}   ("defaults" is optional)

No validation or CSV business logic is implemented here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import uvicorn
from fastapi import Body, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

import config
from defaults import apply_export_defaults
from export import generate_csv
from logging_config import get_logger, setup_logging
from models import ExportDefaults, ReadinessReport, Receipt
from validate import validate_export_data

logger = get_logger("export-api")

app = FastAPI(
    title="Receipt Export API",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# Allows the browser UI to call the API from another local host/port.
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_allow_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ExportRequest(BaseModel):
    """Body shared by the validate and export endpoints."""

    model_config = ConfigDict(extra="ignore")

    receipts: list[Receipt]
    defaults: Optional[ExportDefaults] = Field(default=None)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Unparseable or missing bodies get the same 400 as schema errors."""
    logger.warning("api_request_invalid | path=%s | errors=%s", request.url.path, len(exc.errors()))
    return _error(400, "Invalid request data", details=jsonable_encoder(exc.errors()))


def _issues_payload(report: ReadinessReport) -> list[dict[str, Any]]:
    """Per-receipt issues keyed by wire (camelCase) field names."""
    return [
        {to_camel(field_name): value for field_name, value in issues.items()}
        for issues in report.per_record_issues
    ]


def _parse_request(payload: Any) -> ExportRequest | JSONResponse:
    try:
        request = ExportRequest.model_validate(payload)
    except ValidationError as exc:
        logger.warning("api_request_invalid | errors=%s", exc.error_count())
        return _error(400, "Invalid request data", details=str(exc))

    if not request.receipts:
        return _error(400, "No receipts provided")
    return request


def _prepare(request: ExportRequest) -> tuple[list[Receipt], ReadinessReport]:
    receipts = apply_export_defaults(request.receipts, request.defaults)
    return receipts, validate_export_data(receipts)


def _export_filename() -> str:
    today = datetime.now(timezone.utc).date().isoformat()
    return f"{config.export_filename_prefix()}-{today}.csv"


@app.get("/health")
def health() -> dict[str, str]:
    """Service health check."""
    return {"status": "ok"}


@app.post("/export/validate")
def validate_endpoint(payload: Any = Body(...)) -> JSONResponse:
    """Report which receipts still need data before they can be exported."""
    parsed = _parse_request(payload)
    if isinstance(parsed, JSONResponse):
        return parsed

    _receipts, report = _prepare(parsed)
    return JSONResponse(
        content={
            "exportReady": report.export_ready,
            "perRecordIssues": _issues_payload(report),
            "receiptCount": report.record_count,
            "missingCount": report.missing_count,
            "message": report.summary(),
        }
    )


@app.post("/export-csv")
def export_csv_endpoint(payload: Any = Body(...)) -> Response:
    """Validate the batch and return the import CSV as an attachment."""
    parsed = _parse_request(payload)
    if isinstance(parsed, JSONResponse):
        return parsed

    try:
        receipts, report = _prepare(parsed)
        if not report.export_ready:
            logger.info(
                "api_export_blocked | receipts=%s | missing=%s",
                report.record_count,
                report.missing_count,
            )
            return _error(
                422,
                "Export data validation failed",
                missingData=_issues_payload(report),
            )

        csv_content = generate_csv(receipts, report)
    except Exception as exc:
        logger.error(
            "api_export_error | error_type=%s | error=%s",
            type(exc).__name__,
            exc,
            exc_info=True,
        )
        return _error(500, "Internal error while generating CSV")

    filename = _export_filename()
    logger.info("api_export_complete | receipts=%s | filename=%s", len(receipts), filename)
    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


if __name__ == "__main__":
    setup_logging(level=config.log_level(), json_format=config.log_json())
    uvicorn.run("export_api:app", host=config.api_host(), port=config.api_port(), reload=False)
