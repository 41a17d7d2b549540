"""HTTP boundary: health/info endpoints and the synchronous send endpoint."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .application.dispatch import MailDispatcher
from .config import RelayConfig
from .domain.email import iso_timestamp, missing_required_fields

logger = logging.getLogger(__name__)

SERVICE_NAME = "Email Service"
SERVICE_VERSION = "1.0.0"
REQUIRED_FIELDS_ERROR = "To and subject are required"
SEND_FAILED_ERROR = "Failed to send email"


class SendEmailRequest(BaseModel):
    to: str | None = None
    subject: str | None = None
    text: str | None = None
    html: str | None = None


def create_app(
    config: RelayConfig,
    dispatcher: MailDispatcher,
    *,
    lifespan: Any = None,
) -> FastAPI:
    """Build the FastAPI app bound to an already-selected dispatcher."""
    app = FastAPI(title=SERVICE_NAME, version=SERVICE_VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    # Unparseable bodies get the same 400 as missing fields, not FastAPI's 422.
    app.add_exception_handler(RequestValidationError, _invalid_body_handler)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "OK",
            "service": SERVICE_NAME,
            "port": config.port,
            "emailProvider": dispatcher.provider_name,
            "timestamp": iso_timestamp(),
        }

    @app.get("/")
    def service_info() -> dict[str, Any]:
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "port": config.port,
            "emailProvider": dispatcher.provider_name,
            "endpoints": {
                "health": "/health",
                "sendEmail": "/api/send-email (POST)",
            },
        }

    @app.post("/api/send-email")
    def send_email(payload: SendEmailRequest) -> JSONResponse:
        if missing_required_fields(payload.to, payload.subject):
            return JSONResponse(status_code=400, content={"error": REQUIRED_FIELDS_ERROR})

        try:
            sent = dispatcher.send_mail(payload.to, payload.subject, payload.text, payload.html)
        except Exception:
            logger.exception("[HTTP ERROR] send-email to=%s", payload.to)
            return _send_failed_response()

        if not sent:
            return _send_failed_response()

        return JSONResponse(
            content={
                "success": True,
                "message": "Email sent successfully",
                "to": payload.to,
                "subject": payload.subject,
            }
        )

    return app


async def _invalid_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("[HTTP INVALID BODY] path=%s errors=%s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": REQUIRED_FIELDS_ERROR})


def _send_failed_response() -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": SEND_FAILED_ERROR})
