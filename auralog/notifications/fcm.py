from __future__ import annotations

import json
import threading
from typing import Any, Dict, Optional

import httpx
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account
from loguru import logger

from auralog.config import get_settings

FCM_API_BASE = "https://fcm.googleapis.com/v1"
FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]
SEND_MESSAGE_TIMEOUT = 10  # seconds

# Error codes the dispatcher treats as a dead device token
TOKEN_NOT_REGISTERED = "registration-token-not-registered"
INVALID_REGISTRATION_TOKEN = "invalid-registration-token"
INVALID_TOKEN_CODES = frozenset({TOKEN_NOT_REGISTERED, INVALID_REGISTRATION_TOKEN})

UNAVAILABLE = "unavailable"
AUTH_ERROR = "auth-error"

_FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"


class PushDeliveryError(Exception):
    """A push send failed; ``code`` classifies the failure."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(f"{code}: {message}" if message else code)
        self.code = code
        self.message = message

    @property
    def is_token_invalid(self) -> bool:
        return self.code in INVALID_TOKEN_CODES


def classify_fcm_error(payload: Dict[str, Any]) -> str:
    """Map an FCM v1 error body onto a kebab-case error code."""
    error = payload.get("error") or {}
    status = error.get("status") or ""
    message = (error.get("message") or "").lower()

    fcm_code = ""
    for detail in error.get("details") or []:
        if detail.get("@type") == _FCM_ERROR_TYPE:
            fcm_code = detail.get("errorCode") or ""
            break
    code = fcm_code or status

    if code == "UNREGISTERED":
        return TOKEN_NOT_REGISTERED
    if code == "INVALID_ARGUMENT" and "registration token" in message:
        return INVALID_REGISTRATION_TOKEN
    if not code:
        return "unknown-error"
    return code.lower().replace("_", "-")


class FcmSender:
    """Send push notifications via the Firebase Cloud Messaging HTTP v1 API."""

    def __init__(self, credentials: Optional[service_account.Credentials] = None):
        settings = get_settings()
        self.project_id = settings.fcm_project_id
        self._credentials = credentials or self._load_credentials()
        self._lock = threading.Lock()

    @classmethod
    def is_configured(cls) -> bool:
        """Check if a Firebase project and service account are set."""
        settings = get_settings()
        return bool(
            settings.fcm_project_id
            and (settings.fcm_service_account_json or settings.fcm_service_account_file)
        )

    @staticmethod
    def _load_credentials() -> service_account.Credentials:
        settings = get_settings()
        if settings.fcm_service_account_json:
            info = json.loads(settings.fcm_service_account_json)
            return service_account.Credentials.from_service_account_info(info, scopes=FCM_SCOPES)
        return service_account.Credentials.from_service_account_file(
            settings.fcm_service_account_file, scopes=FCM_SCOPES
        )

    def _access_token(self) -> str:
        # Credentials are shared by the dispatch worker threads
        with self._lock:
            if not self._credentials.valid:
                try:
                    self._credentials.refresh(Request())
                except GoogleAuthError as e:
                    raise PushDeliveryError(AUTH_ERROR, str(e)) from e
            return self._credentials.token

    def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> str:
        """Send one notification to a device token.

        Args:
            token: FCM registration token of the device.
            title: Notification title.
            body: Notification body.
            data: Optional string key/value payload.

        Returns:
            The FCM message name.

        Raises:
            PushDeliveryError: with a classified ``code`` on any failure.
        """
        url = f"{FCM_API_BASE}/projects/{self.project_id}/messages:send"
        message: Dict[str, Any] = {
            "token": token,
            "notification": {"title": title, "body": body},
        }
        if data:
            message["data"] = {k: str(v) for k, v in data.items()}

        headers = {"Authorization": f"Bearer {self._access_token()}"}

        try:
            with httpx.Client(timeout=SEND_MESSAGE_TIMEOUT) as client:
                response = client.post(url, json={"message": message}, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            try:
                payload = e.response.json()
            except ValueError:
                payload = {}
            code = classify_fcm_error(payload)
            logger.debug(f"FCM error: {e.response.status_code} - {e.response.text}")
            raise PushDeliveryError(code, e.response.text) from e
        except httpx.RequestError as e:
            raise PushDeliveryError(UNAVAILABLE, str(e)) from e

        return response.json().get("name", "")
