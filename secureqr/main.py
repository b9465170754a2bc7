# main.py

from __future__ import annotations

import json
import logging
import secrets
import time
from typing import List, Literal, Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from secureqr import config
from secureqr.generation.barcode import validate_barcode_content
from secureqr.generation.builder import build_payload
from secureqr.history import push_history
from secureqr.models import ContactInfo, HistoryEntry, WifiRecord
from secureqr.qr_scanner.qr_engine import classify, classify_async
from secureqr.utils.reason_cleaner import (
    clean_reasons,
    describe_barcode_failure,
    describe_remote,
)

# Init Sentry if configured
if config.SENTRY_DSN:
    sentry_sdk.init(dsn=config.SENTRY_DSN, traces_sample_rate=0.2)

logger = logging.getLogger("secureqr.api")
logging.basicConfig(level=config.LOG_LEVEL, format="%(message)s")

app = FastAPI(title="SecureQR API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Return JSON for unexpected errors/validation failures to avoid empty/HTML responses
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(json.dumps({"event": "error", "path": str(request.url), "error": str(exc)}))
    if config.SENTRY_DSN:
        sentry_sdk.capture_exception(exc)
    return JSONResponse({"error": "Internal server error."}, status_code=500)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Invalid request.", "detail": exc.errors()}, status_code=422)


# Request id + one JSON log line per request
@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or secrets.token_hex(8)
    request.state.request_id = request_id
    start_time = time.time()
    response = await call_next(request)
    duration = round((time.time() - start_time) * 1000, 2)
    log_payload = {
        "event": "request",
        "request_id": request_id,
        "path": request.url.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration,
        "ip": _get_client_ip(request),
    }
    logger.info(json.dumps(log_payload))
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response


def _get_client_ip(request: Request) -> str:
    xfwd = request.headers.get("x-forwarded-for")
    if xfwd:
        return xfwd.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


# ---------------------------------------------------------
# Models
# ---------------------------------------------------------
class ClassifyRequest(BaseModel):
    content: str
    hint: Optional[str] = None
    remote: bool = False


class BarcodeRequest(BaseModel):
    format: Optional[str] = None
    content: str = ""


class PayloadRequest(BaseModel):
    type: Literal["url", "text", "wifi", "tel", "email", "sms"]
    input: Optional[str] = None
    wifi: Optional[WifiRecord] = None
    contact: Optional[ContactInfo] = None


class HistoryPushRequest(BaseModel):
    entries: List[HistoryEntry] = Field(default_factory=list)
    entry: HistoryEntry
    capacity: Optional[int] = None


# ---------------------------------------------------------
# Routes
# ---------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/classify")
async def classify_endpoint(body: ClassifyRequest):
    if not body.content.strip():
        return JSONResponse({"error": "No content provided."}, status_code=400)

    if body.remote:
        result = await classify_async(body.content, body.hint)
    else:
        result = classify(body.content, body.hint)

    payload = result.model_dump(mode="json")
    payload["explanations"] = clean_reasons(result.reasons)
    payload["remote_message"] = describe_remote(result.remote)
    return payload


@app.post("/barcode/validate")
def barcode_validate(body: BarcodeRequest):
    result = validate_barcode_content(body.format, body.content)
    payload = result.model_dump(mode="json")
    if not result.ok:
        payload["message"] = describe_barcode_failure(result.reason)
    return payload


@app.post("/payload/build")
def payload_build(body: PayloadRequest):
    return {
        "payload": build_payload(
            body.type, input=body.input, wifi=body.wifi, contact=body.contact
        )
    }


@app.post("/history/push")
def history_push(body: HistoryPushRequest):
    entries = push_history(body.entries, body.entry, body.capacity)
    return {"entries": [e.model_dump(mode="json") for e in entries]}
