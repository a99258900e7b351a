from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from google.api_core.client_options import ClientOptions
from google.cloud import dialogflowcx_v3
from google.oauth2 import service_account
from google.protobuf.json_format import MessageToDict

from .config import Settings

logger = logging.getLogger("storefront.dialogflow")

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"


class DialogflowConfigError(ValueError):
    """Raised when the Dialogflow client cannot be configured from Settings."""


@dataclass
class DetectIntentResult:
    """Plain-dict view of one detectIntent query result."""
    response_messages: List[Dict[str, Any]] = field(default_factory=list)
    intent: Optional[str] = None
    confidence: Optional[float] = None
    parameters: Optional[Dict[str, Any]] = None


@dataclass
class ClientInit:
    """Outcome of building the client at startup: exactly one of client/error is set."""
    client: Optional["DialogflowClient"] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.client is not None


class DialogflowClient:
    """Thin wrapper around the Dialogflow CX SessionsClient bound to one agent."""

    def __init__(self, settings: Settings, sessions_client: Optional[Any] = None) -> None:
        """Purpose: Validate agent settings and build (or accept) a SessionsClient.
        Inputs/Outputs: Input is Settings and an optional prebuilt sessions client; no return value.
        Side Effects / State: Loads service account credentials when no client is passed.
        Dependencies: Uses google.cloud.dialogflowcx_v3 and google.oauth2.service_account.
        Failure Modes: Raises DialogflowConfigError if project or agent id is missing;
            credential loading errors propagate.
        If Removed: /api/chat cannot reach the agent.
        Testing Notes: Pass a fake sessions client and assert request construction.
        """
        # Validate identifiers before touching credentials.
        if not settings.project_id:
            raise DialogflowConfigError("GOOGLE_CLOUD_PROJECT_ID is required")
        if not settings.agent_id:
            raise DialogflowConfigError("DIALOGFLOW_AGENT_ID is required")
        self._settings = settings
        self._sessions = sessions_client or _build_sessions_client(settings)

    @classmethod
    def create(cls, settings: Settings) -> ClientInit:
        """Purpose: Build the client at startup without letting failures escape.
        Inputs/Outputs: Input is Settings; output is a ClientInit with client or error.
        Side Effects / State: Logs the failure reason.
        Dependencies: Calls the constructor.
        Failure Modes: Any construction error is captured in ClientInit.error.
        If Removed: A bad credential block crashes the app at import time.
        Testing Notes: Empty agent id should yield ClientInit(ok=False).
        """
        try:
            return ClientInit(client=cls(settings))
        except Exception as exc:
            logger.error("Failed to initialize Dialogflow client: %s", exc)
            logger.error("Please ensure all Google Cloud environment variables are set correctly")
            return ClientInit(error=str(exc))

    def session_path(self, session_id: str) -> str:
        settings = self._settings
        return (
            f"projects/{settings.project_id}/locations/{settings.location}"
            f"/agents/{settings.agent_id}/sessions/{session_id}"
        )

    def build_request(self, message: str, session_id: str) -> dialogflowcx_v3.DetectIntentRequest:
        """Build the detectIntent request for one user utterance."""
        return dialogflowcx_v3.DetectIntentRequest(
            session=self.session_path(session_id),
            query_input=dialogflowcx_v3.QueryInput(
                text=dialogflowcx_v3.TextInput(text=message),
                language_code=self._settings.language_code,
            ),
            query_params=dialogflowcx_v3.QueryParameters(
                parameters={"max_products": float(self._settings.max_products)},
            ),
        )

    def detect_intent(self, message: str, session_id: str) -> DetectIntentResult:
        """Purpose: Send one utterance to the agent and return its reply as plain dicts.
        Inputs/Outputs: Input is the user text and session id; output is DetectIntentResult.
        Side Effects / State: One network call to Dialogflow CX.
        Dependencies: Uses the wrapped SessionsClient and MessageToDict.
        Failure Modes: google.api_core exceptions and timeouts propagate to the caller.
        If Removed: The chat route has nothing to parse.
        Testing Notes: Return a canned DetectIntentResponse from a fake client.
        """
        # Log a truncated preview, call the agent, flatten the result.
        preview = message[:100] + ("..." if len(message) > 100 else "")
        logger.info(
            "detect_intent session=%s project=%s message=%s",
            session_id,
            self._settings.project_id,
            preview,
        )
        request = self.build_request(message, session_id)
        response = self._sessions.detect_intent(request=request, timeout=self._settings.timeout_sec)
        result = _query_result_to_dict(response.query_result)

        match = result.get("match") or {}
        intent = (match.get("intent") or {}).get("displayName") or (
            result.get("intent") or {}
        ).get("displayName")
        confidence = match.get("confidence", result.get("intentDetectionConfidence"))
        messages = result.get("responseMessages") or []
        logger.info(
            "detect_intent session=%s intent=%s messages=%d", session_id, intent, len(messages)
        )
        return DetectIntentResult(
            response_messages=list(messages),
            intent=intent,
            confidence=confidence,
            parameters=result.get("parameters"),
        )


def _query_result_to_dict(query_result: Any) -> Dict[str, Any]:
    if query_result is None:
        return {}
    if isinstance(query_result, Mapping):
        return dict(query_result)
    return MessageToDict(type(query_result).pb(query_result))


def _build_sessions_client(settings: Settings) -> dialogflowcx_v3.SessionsClient:
    """Purpose: Create a SessionsClient with the configured credentials and endpoint.
    Inputs/Outputs: Input is Settings; output is a SessionsClient.
    Side Effects / State: Reads the key file when GOOGLE_APPLICATION_CREDENTIALS is set.
    Dependencies: Uses google.oauth2.service_account and google.api_core ClientOptions.
    Failure Modes: Malformed keys raise ValueError; missing key files raise OSError.
    If Removed: No authenticated transport to Dialogflow exists.
    Testing Notes: Covered indirectly; regional locations must switch the endpoint.
    """
    # Prefer the inline block, then the key file, then application default credentials.
    credentials = None
    if settings.has_inline_credentials:
        credentials = service_account.Credentials.from_service_account_info(
            settings.service_account_info, scopes=[CLOUD_PLATFORM_SCOPE]
        )
    elif settings.credentials_file:
        credentials = service_account.Credentials.from_service_account_file(
            str(settings.credentials_file), scopes=[CLOUD_PLATFORM_SCOPE]
        )

    client_options = None
    if settings.location and settings.location != "global":
        client_options = ClientOptions(api_endpoint=f"{settings.location}-dialogflow.googleapis.com")
    return dialogflowcx_v3.SessionsClient(credentials=credentials, client_options=client_options)
