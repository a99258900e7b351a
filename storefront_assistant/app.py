from __future__ import annotations

import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import load_settings
from .dialogflow_client import ClientInit, DetectIntentResult, DialogflowClient
from .dialogflow_parser import FALLBACK_TEXT, ParsedReply, parse_response
from .models import ChatMessage, ChatRequest, ChatResponse, ErrorResponse
from .product_display import product_card
from .text_formatter import format_response_text

BASE_DIR = Path(__file__).resolve().parent

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("storefront").setLevel(log_level)
logger = logging.getLogger("storefront.api")

MESSAGE_REQUIRED = "Message is required and must be a string"
INVALID_SESSION_ID = "Session id must be 1-36 letters, digits, '-' or '_'"
CLIENT_NOT_INITIALIZED = "Dialogflow client not initialized. Please check your credentials."
REQUEST_FAILED = "Failed to process your request. Please try again later."

settings = load_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the Dialogflow client once per process and keep the outcome on app.state."""
    app.state.dialogflow = DialogflowClient.create(settings)
    if app.state.dialogflow.ok:
        logger.info(
            "Dialogflow client ready project=%s location=%s agent=%s",
            settings.project_id,
            settings.location,
            settings.agent_id,
        )
    yield


app = FastAPI(title="Storefront Assistant", lifespan=lifespan)
app.mount("/static", StaticFiles(directory=settings.frontend_dir), name="static")


def get_dialogflow_client(request: Request) -> ClientInit:
    """Purpose: Hand the startup ClientInit to routes as an injectable dependency.
    Inputs/Outputs: Input is the current Request; output is the ClientInit built in lifespan.
    Side Effects / State: None.
    Dependencies: Reads app.state.dialogflow set by lifespan.
    Failure Modes: Missing state (lifespan not run) yields ClientInit with an error.
    If Removed: Routes would reach for a module-level client and tests could not swap it.
    Testing Notes: Override via app.dependency_overrides with a fake client.
    """
    # Fall back to an error result when lifespan has not run.
    init = getattr(request.app.state, "dialogflow", None)
    if init is None:
        return ClientInit(error="Dialogflow client was not created")
    return init


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.info("rejected request path=%s errors=%d", request.url.path, len(errors))
    if any("session_id" in error.get("loc", ()) for error in errors):
        error = INVALID_SESSION_ID
    else:
        error = MESSAGE_REQUIRED
    return JSONResponse(status_code=400, content=ErrorResponse(error=error).model_dump(exclude_none=True))


@app.get("/", include_in_schema=False)
def serve_index() -> FileResponse:
    """Serve the chat widget entrypoint HTML file."""
    return FileResponse(settings.frontend_dir / "index.html")


@app.get("/api/health")
def health(dialogflow: ClientInit = Depends(get_dialogflow_client)) -> dict:
    return {"status": "ok", "dialogflow": dialogflow.ok}


def build_chat_response(
    parsed: ParsedReply, session_id: str, result: Optional[DetectIntentResult] = None
) -> ChatResponse:
    """Purpose: Assemble the API response from the parsed reply and query metadata.
    Inputs/Outputs: Inputs are ParsedReply, session id and optional DetectIntentResult;
        output is a ChatResponse.
    Side Effects / State: Stamps the bot transcript entry with a fresh id and the current time.
    Dependencies: Uses product_card, format_response_text and ChatMessage.from_reply.
    Failure Modes: None; missing result fields stay None.
    If Removed: The chat route cannot answer in the widget's format.
    Testing Notes: Verify cards align one-to-one with products and reply mirrors the message.
    """
    # Decorate products and text for the widget, attach vendor metadata if present.
    response = ChatResponse(
        message=parsed.message,
        products=parsed.products,
        cards=[product_card(product) for product in parsed.products],
        blocks=format_response_text(parsed.message),
        intent=result.intent if result else None,
        confidence=result.confidence if result else None,
        parameters=result.parameters if result else None,
        session_id=session_id,
        actual_response=result.response_messages if result and settings.include_raw_response else None,
    )
    response.reply = ChatMessage.from_reply(response, message_id=uuid.uuid4().hex, timestamp=time.time())
    return response


@app.post(
    "/api/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def chat(request: ChatRequest, dialogflow: ClientInit = Depends(get_dialogflow_client)):
    """Purpose: Forward one chat message to Dialogflow CX and normalize its reply.
    Inputs/Outputs: Input is ChatRequest; output is ChatResponse or an ErrorResponse JSON.
    Side Effects / State: One Dialogflow call; nothing is stored server-side.
    Dependencies: Uses DialogflowClient.detect_intent and parse_response.
    Failure Modes: Blank message -> 400; uninitialized client or vendor error -> 500.
    If Removed: The widget has no backend.
    Testing Notes: Override get_dialogflow_client with a fake returning canned messages.
    """
    # Validate input, call the agent, and degrade to the fallback text on empty replies.
    message = request.message
    if not message or not message.strip():
        return JSONResponse(status_code=400, content=ErrorResponse(error=MESSAGE_REQUIRED).model_dump(exclude_none=True))
    if not dialogflow.ok:
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=CLIENT_NOT_INITIALIZED, details=dialogflow.error).model_dump(exclude_none=True),
        )

    session_id = request.session_id or str(uuid.uuid4())
    try:
        result = dialogflow.client.detect_intent(message, session_id)
    except Exception as exc:
        logger.exception("Error calling Dialogflow API session=%s", session_id)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error=REQUEST_FAILED, details=str(exc)).model_dump(exclude_none=True),
        )

    if result.response_messages:
        parsed = parse_response(result.response_messages)
    else:
        parsed = ParsedReply(message=FALLBACK_TEXT)
    logger.info(
        "session=%s intent=%s products=%d", session_id, result.intent, len(parsed.products)
    )
    return build_chat_response(parsed, session_id, result)
