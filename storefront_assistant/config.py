from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

BASE_DIR = Path(__file__).resolve().parent

DEFAULT_PROJECT_ID = "commerce-tools-b2b-services"
DEFAULT_AGENT_ID = "56b4b974-11cf-49e9-bc74-99643d260250"

# Environment variable -> service account JSON key.
SERVICE_ACCOUNT_ENV_KEYS: Dict[str, str] = {
    "GOOGLE_CLIENT_TYPE": "type",
    "GOOGLE_PROJECT_ID": "project_id",
    "GOOGLE_PRIVATE_KEY_ID": "private_key_id",
    "GOOGLE_PRIVATE_KEY": "private_key",
    "GOOGLE_CLIENT_EMAIL": "client_email",
    "GOOGLE_CLIENT_ID": "client_id",
    "GOOGLE_AUTH_URI": "auth_uri",
    "GOOGLE_TOKEN_URI": "token_uri",
    "GOOGLE_AUTH_PROVIDER_X509_CERT_URL": "auth_provider_x509_cert_url",
    "GOOGLE_CLIENT_X509_CERT_URL": "client_x509_cert_url",
    "GOOGLE_UNIVERSE_DOMAIN": "universe_domain",
}


@dataclass(frozen=True)
class Settings:
    """Configuration container for the Dialogflow agent, credentials, and API behaviour."""
    project_id: str
    location: str
    agent_id: str
    language_code: str
    max_products: int
    timeout_sec: float
    include_raw_response: bool
    credentials_file: Optional[Path] = None
    service_account_info: Dict[str, str] = field(default_factory=dict)
    frontend_dir: Path = (BASE_DIR / ".." / "frontend").resolve()

    @property
    def has_inline_credentials(self) -> bool:
        """True when the inline service account block carries a key and an email."""
        return bool(
            self.service_account_info.get("private_key")
            and self.service_account_info.get("client_email")
        )


def load_service_account_info() -> Dict[str, str]:
    """Purpose: Collect the inline service account block from environment variables.
    Inputs/Outputs: No inputs; returns a dict keyed like a service account JSON file.
    Side Effects / State: Reads environment variables.
    Dependencies: Uses SERVICE_ACCOUNT_ENV_KEYS.
    Failure Modes: Unset variables are omitted; never raises.
    If Removed: Deployments without a key file cannot authenticate to Dialogflow.
    Testing Notes: Set GOOGLE_PRIVATE_KEY with literal "\\n" and verify it is unescaped.
    """
    # Keep only variables that are set and unescape the PEM newlines.
    info: Dict[str, str] = {}
    for env_key, json_key in SERVICE_ACCOUNT_ENV_KEYS.items():
        value = os.getenv(env_key)
        if not value:
            continue
        if json_key == "private_key":
            value = value.replace("\\n", "\n")
        info[json_key] = value
    return info


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables and filesystem paths.
    Dependencies: Uses os.getenv, load_service_account_info and BASE_DIR.
    Failure Modes: Invalid DIALOGFLOW_MAX_PRODUCTS/DIALOGFLOW_TIMEOUT_SEC values raise ValueError.
    If Removed: App cannot locate the Dialogflow agent and fails at startup.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve the optional key file, then build Settings.
    credentials_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    credentials_file = Path(credentials_path) if credentials_path else None

    frontend_path = os.getenv("FRONTEND_DIR")
    frontend_dir = Path(frontend_path) if frontend_path else (BASE_DIR / ".." / "frontend").resolve()

    return Settings(
        project_id=os.getenv("GOOGLE_CLOUD_PROJECT_ID") or DEFAULT_PROJECT_ID,
        location=os.getenv("GOOGLE_CLOUD_LOCATION") or "global",
        agent_id=os.getenv("DIALOGFLOW_AGENT_ID") or DEFAULT_AGENT_ID,
        language_code=os.getenv("DIALOGFLOW_LANGUAGE_CODE") or "en",
        max_products=int(os.getenv("DIALOGFLOW_MAX_PRODUCTS", "5")),
        timeout_sec=float(os.getenv("DIALOGFLOW_TIMEOUT_SEC", "30")),
        include_raw_response=_env_flag("INCLUDE_RAW_RESPONSE", True),
        credentials_file=credentials_file,
        service_account_info=load_service_account_info(),
        frontend_dir=frontend_dir,
    )
