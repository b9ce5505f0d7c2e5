"""
Document Interpreter - FastAPI Application

REST API that explains official documents (pasted text, images, PDFs)
using an LLM.
"""

import logging
import os
import time
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, Header, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

load_dotenv()
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from document_interpreter import (
    AnalysisTier,
    Attachment,
    InterpretationPipeline,
    InterpretationResult,
    InterpreterConfig,
    InterpreterError,
    PayloadTooLargeError,
    SubmittedDocument,
    ValidationError,
    __version__,
    translate_error,
)
from document_interpreter.pipeline import MSG_NO_CONTENT

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    value = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in value.split(",") if origin.strip()] or ["*"]


# Initialize FastAPI app
app = FastAPI(
    title="Document Interpreter",
    description="Plain-language explanations of official documents",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Pipeline is built lazily on first use from the environment
_config: InterpreterConfig | None = None
_pipeline: InterpretationPipeline | None = None


def get_config() -> InterpreterConfig:
    global _config
    if _config is None:
        _config = InterpreterConfig.from_env()
    return _config


def get_pipeline() -> InterpretationPipeline:
    """Get or create the process-wide InterpretationPipeline."""
    global _pipeline
    if _pipeline is None:
        _pipeline = InterpretationPipeline.from_config(get_config())
        logger.info(
            "Pipeline ready: llm=%s, ocr=%s",
            _pipeline.gateway.name,
            _pipeline.extractor.ocr_backend.name if _pipeline.extractor.ocr_backend else "none",
        )
    return _pipeline


# ============================================================================
# Pydantic Models
# ============================================================================


class ImageInput(BaseModel):
    """Base64 image (or PDF) supplied in a JSON body."""

    base64: str
    mimeType: str = ""


class ChatRequest(BaseModel):
    """Follow-up chat request."""

    messages: list[Any] | None = None
    system: str | None = None
    image: ImageInput | None = None
    documentContext: str | None = None


class AnalyzeImageRequest(BaseModel):
    """Direct multimodal analysis request."""

    image: ImageInput | None = None
    type: str = "preview"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str = __version__
    uptime_seconds: float
    llm_provider: str
    backends: dict[str, bool] = {}


class InterpretResponse(BaseModel):
    """Document interpretation response."""

    success: bool = True
    tier: str
    interpretation: str
    extraction_method: str | None = None
    route: str | None = None
    usage: dict[str, Any] | None = None
    model: str | None = None
    processing_time_ms: float


class ChatResponse(BaseModel):
    """Follow-up chat response."""

    success: bool = True
    content: str
    usage: dict[str, Any] | None = None
    model: str | None = None


class ErrorResponse(BaseModel):
    """Error response."""

    success: bool = False
    error: str


ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}

_start_time = time.time()


# ============================================================================
# Helpers
# ============================================================================


async def _read_submission(
    file: UploadFile | None, text: str | None
) -> SubmittedDocument:
    """Build a SubmittedDocument from multipart fields. A file wins over text."""
    if file is not None and file.filename:
        limit = get_config().max_upload_bytes
        too_large = PayloadTooLargeError(
            f"Fișierul depășește limita de {get_config().max_upload_mb:.0f} MB."
        )
        if file.size is not None and file.size > limit:
            raise too_large
        # Never buffer more than one byte past the limit
        content = await file.read(limit + 1)
        if len(content) > limit:
            raise too_large
        return SubmittedDocument.from_upload(content, file.content_type, file.filename)

    if text is not None and text.strip():
        return SubmittedDocument.from_text(text)

    raise ValidationError(MSG_NO_CONTENT)


def _interpret_response(result: InterpretationResult) -> InterpretResponse:
    return InterpretResponse(
        tier=result.tier.value,
        interpretation=result.text,
        extraction_method=result.extraction_method.value if result.extraction_method else None,
        route=result.route.value if result.route else None,
        usage=result.usage,
        model=result.model,
        processing_time_ms=result.processing_time_ms,
    )


def _backend_status(pipeline: InterpretationPipeline) -> dict[str, bool]:
    """Availability of the LLM gateway and OCR engine; may block on subprocess calls."""
    ocr_backend = pipeline.extractor.ocr_backend
    return {
        "llm": pipeline.gateway.is_available(),
        "ocr": ocr_backend.is_available() if ocr_backend else False,
    }


def _attachment(image: ImageInput | None) -> Attachment | None:
    if image is None:
        return None
    return Attachment.from_base64(image.base64, image.mimeType)


# ============================================================================
# Endpoints
# ============================================================================


@app.get("/", tags=["System"])
async def root():
    """Root endpoint with API info."""
    return {
        "status": "OK",
        "service": "document-interpreter",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Liveness check with backend availability."""
    pipeline = await run_in_threadpool(get_pipeline)
    backends = await run_in_threadpool(_backend_status, pipeline)

    return HealthResponse(
        status="healthy",
        version=__version__,
        uptime_seconds=time.time() - _start_time,
        llm_provider=pipeline.gateway.name,
        backends=backends,
    )


@app.post(
    "/api/interpret",
    response_model=InterpretResponse,
    responses=ERROR_RESPONSES,
    tags=["Interpretation"],
)
async def interpret_preview(
    file: UploadFile | None = File(default=None, description="PDF, image or text file"),
    text: str | None = Form(default=None, description="Pasted document text"),
):
    """
    Short preview of a document: type, urgency, summary, deadline.

    Send either a `file` (PDF, image, text) or pasted `text`.
    """
    document = await _read_submission(file, text)
    result = await run_in_threadpool(
        get_pipeline().interpret, document, AnalysisTier.PREVIEW
    )
    return _interpret_response(result)


@app.post(
    "/api/interpret-full",
    response_model=InterpretResponse,
    responses={**ERROR_RESPONSES, 402: {"model": ErrorResponse}},
    tags=["Interpretation"],
)
async def interpret_full(
    file: UploadFile | None = File(default=None, description="PDF, image or text file"),
    text: str | None = Form(default=None, description="Pasted document text"),
    x_payment_token: str | None = Header(default=None),
):
    """
    Complete explanation of a document (paid tier).

    **Sections:** what it is, why you received it, required actions,
    deadline, consequences, appeal options, practical tips, where to get help.
    """
    document = await _read_submission(file, text)
    result = await run_in_threadpool(
        get_pipeline().interpret, document, AnalysisTier.FULL, x_payment_token
    )
    return _interpret_response(result)


@app.post(
    "/api/claude",
    response_model=ChatResponse,
    responses=ERROR_RESPONSES,
    tags=["Chat"],
)
async def chat(body: ChatRequest):
    """
    Follow-up question about a document.

    `messages` is the full history, oldest first. An optional `image` is
    attached to the latest user message; `documentContext` (a previous
    analysis) is added to the instructions.
    """
    if not body.messages:
        raise ValidationError("Lista de mesaje lipsește sau este goală.")

    result = await run_in_threadpool(
        get_pipeline().chat,
        body.messages,
        body.system,
        _attachment(body.image),
        body.documentContext,
    )
    return ChatResponse(content=result.text, usage=result.usage, model=result.model)


@app.post(
    "/api/analyze-image",
    response_model=InterpretResponse,
    responses={**ERROR_RESPONSES, 402: {"model": ErrorResponse}},
    tags=["Interpretation"],
)
async def analyze_image(
    body: AnalyzeImageRequest,
    x_payment_token: str | None = Header(default=None),
):
    """Analyze an image or PDF directly with the LLM, without text extraction."""
    attachment = _attachment(body.image)
    if attachment is None:
        raise ValidationError("Imaginea lipsește.")

    tier = AnalysisTier.parse(body.type)
    result = await run_in_threadpool(
        get_pipeline().analyze_attachment, attachment, tier, x_payment_token
    )
    return _interpret_response(result)


# ============================================================================
# Error handlers
# ============================================================================


def _error_response(exc: BaseException) -> JSONResponse:
    outcome = translate_error(exc)
    if outcome.status_code >= 500:
        logger.error("Request failed (%d): %s", outcome.status_code, exc, exc_info=exc)
    else:
        logger.warning("Request rejected (%d): %s", outcome.status_code, exc)
    return JSONResponse(
        status_code=outcome.status_code,
        content={"success": False, "error": outcome.message},
    )


@app.exception_handler(InterpreterError)
async def interpreter_exception_handler(request, exc):
    """Typed pipeline errors."""
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc):
    """Malformed request bodies."""
    logger.warning("Malformed request to %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Cererea nu are formatul corect."},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc):
    """Custom HTTP exception handler."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Last-resort handler; the process keeps serving."""
    return _error_response(exc)


def run() -> None:
    """Run the service with uvicorn (PORT, default 3000)."""
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
    )


if __name__ == "__main__":
    run()
