"""HTTP client for the Procore accident log and OAuth endpoints."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import requests

from .models import AccidentLog

TOKEN_URL = "https://login-sandbox.procore.com/oauth/token"
API_BASE = "https://sandbox.procore.com/rest/v1.0"
REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ProcoreError(Exception):
    """A failure talking to Procore, with the HTTP status to report for it."""

    def __init__(self, message: str, status: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


@dataclass(frozen=True)
class UpstreamResponse:
    """A Procore response to be passed through unchanged."""

    status: int
    content_type: str
    body: bytes


@dataclass(frozen=True)
class ProcoreSettings:
    """Credentials and identifiers for the Procore project."""

    client_id: str = ""
    client_secret: str = ""
    project_id: str = ""
    company_id: str = ""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ProcoreSettings:
        """Read the settings from PROCORE_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            client_id=env.get("PROCORE_CLIENT_ID", ""),
            client_secret=env.get("PROCORE_CLIENT_SECRET", ""),
            project_id=env.get("PROCORE_PROJECT_ID", ""),
            company_id=env.get("PROCORE_COMPANY_ID", ""),
        )


def _encode_form(form: Mapping[str, str]) -> str:
    return urlencode(sorted(form.items()))


def _require_log_id(log_id: Any) -> str:
    log_id = "" if log_id is None else str(log_id)
    if not log_id:
        raise ValueError("Log ID is required")
    return log_id


class ProcoreClient:
    """Calls the Procore sandbox API on behalf of a user token."""

    token_timeout = 10.0

    def __init__(
        self, settings: ProcoreSettings, session: requests.Session | None = None
    ) -> None:
        self.settings = settings
        self.session = session if session is not None else requests.Session()

    def _logs_url(self, log_id: str | None = None) -> str:
        url = f"{API_BASE}/projects/{self.settings.project_id}/accident_logs"
        return f"{url}/{log_id}" if log_id is not None else url

    def _headers(self, token: str, *, form: bool = False) -> dict[str, str]:
        headers = {
            "Authorization": token,
            "Procore-Company-Id": self.settings.company_id,
        }
        if form:
            headers["Content-Type"] = FORM_CONTENT_TYPE
        return headers

    def _forward(
        self, method: str, url: str, token: str, data: str | None = None
    ) -> UpstreamResponse:
        try:
            response = self.session.request(
                method, url, headers=self._headers(token, form=data is not None), data=data
            )
        except requests.RequestException as exc:
            raise ProcoreError(str(exc)) from exc
        return UpstreamResponse(
            status=response.status_code,
            content_type=response.headers.get("Content-Type", ""),
            body=response.content,
        )

    def exchange_code(self, code: str) -> dict[str, Any]:
        """Trade an authorization code for an access token."""
        if not code:
            raise ValueError("Authorization code is required")
        body = _encode_form(
            {
                "grant_type": "authorization_code",
                "client_id": self.settings.client_id,
                "client_secret": self.settings.client_secret,
                "code": code,
                "redirect_uri": REDIRECT_URI,
            }
        )
        try:
            response = self.session.post(
                TOKEN_URL,
                data=body,
                headers={"Content-Type": FORM_CONTENT_TYPE},
                timeout=self.token_timeout,
            )
        except requests.RequestException as exc:
            raise ProcoreError("Failed to get token from Procore") from exc
        if response.status_code != 200:
            raise ProcoreError(response.text, status=response.status_code)
        parse_error = ProcoreError("Failed to parse token response")
        try:
            payload = json.loads(response.content)
        except ValueError as exc:
            raise parse_error from exc
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise parse_error
        access_token = payload.get("access_token") or ""
        token_type = payload.get("token_type") or ""
        expires_in = payload.get("expires_in") or 0
        if not isinstance(access_token, str) or not isinstance(token_type, str):
            raise parse_error
        if isinstance(expires_in, bool) or not isinstance(expires_in, int):
            raise parse_error
        return {
            "access_token": access_token,
            "token_type": token_type,
            "expires_in": expires_in,
        }

    def list_logs(self, token: str) -> UpstreamResponse:
        """Fetch all accident logs of the project."""
        return self._forward("GET", self._logs_url(), token)

    def get_log(self, token: str, log_id: str) -> UpstreamResponse:
        """Fetch one accident log."""
        return self._forward("GET", self._logs_url(_require_log_id(log_id)), token)

    def list_logs_between(
        self, token: str, start_date: str | None = None, end_date: str | None = None
    ) -> list[dict[str, Any]]:
        """Fetch and decode the logs, optionally limited to a date range."""
        if not self.settings.project_id or not self.settings.company_id:
            raise ProcoreError("Missing required environment variables")
        params = [
            (name, value)
            for name, value in (("end_date", end_date), ("start_date", start_date))
            if value
        ]
        url = self._logs_url()
        if params:
            url = f"{url}?{urlencode(params)}"
        try:
            response = self.session.get(url, headers=self._headers(token, form=True))
        except requests.RequestException as exc:
            raise ProcoreError(f"Failed to contact Procore API: {exc}") from exc
        try:
            payload = json.loads(response.content)
        except ValueError as exc:
            raise ProcoreError(f"Failed to parse response: {exc}") from exc
        if payload is None:
            return []
        if not isinstance(payload, list) or not all(
            isinstance(item, dict) for item in payload
        ):
            raise ProcoreError(
                "Failed to parse response: expected a JSON array of objects"
            )
        return payload

    def create_log(self, token: str, log: AccidentLog) -> UpstreamResponse:
        """Create an accident log."""
        return self._forward(
            "POST", self._logs_url(), token, data=_encode_form(log.create_form())
        )

    def update_log(self, token: str, log_id: str, log: AccidentLog) -> UpstreamResponse:
        """Update the non-empty fields of an accident log."""
        url = self._logs_url(_require_log_id(log_id))
        return self._forward("PUT", url, token, data=_encode_form(log.update_form()))

    def delete_log(self, token: str, log_id: str) -> UpstreamResponse:
        """Delete an accident log."""
        return self._forward("DELETE", self._logs_url(_require_log_id(log_id)), token)