from __future__ import annotations

import logging
import os
from typing import Any

import requests
from requests.adapters import HTTPAdapter

logger = logging.getLogger(__name__)

_SECRET_GETTER = None
_TOKEN_GETTER = None


class ApiError(RuntimeError):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _build_session():
    session = requests.Session()
    # Failed writes are reported to the user, never retried.
    adapter = HTTPAdapter(max_retries=0, pool_connections=10, pool_maxsize=10)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


_SESSION = _build_session()


def configure(secret_getter, token_getter):
    global _SECRET_GETTER, _TOKEN_GETTER
    _SECRET_GETTER = secret_getter
    _TOKEN_GETTER = token_getter


def _get_secret(path, default=None):
    if _SECRET_GETTER is None:
        return default
    return _SECRET_GETTER(path, default)


def api_base_url():
    return (
        _get_secret(("app", "API_BASE_URL"))
        or _get_secret(("API_BASE_URL",))
        or os.getenv("API_BASE_URL")
        or "http://localhost:8000"
    )


def _error_message(response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason
    if isinstance(payload, dict):
        return str(payload.get("error") or payload.get("detail") or response.reason)
    return str(payload)


def request(
    method: str,
    path: str,
    params: dict | None = None,
    json: dict | None = None,
    timeout: int = 10,
    auth: bool = True,
    token: str | None = None,
) -> Any:
    base = api_base_url().rstrip("/")
    headers = {}
    if auth:
        token = token or (_TOKEN_GETTER() if _TOKEN_GETTER else None)
        if not token:
            raise ApiError(401, "Not signed in")
        headers["Authorization"] = f"Bearer {token}"
    url = f"{base}{path}"
    try:
        response = _SESSION.request(method, url, params=params, json=json, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        logger.warning("API request %s %s failed: %s", method, path, exc)
        raise ApiError(0, "Could not reach the server") from exc
    if not response.ok:
        raise ApiError(response.status_code, _error_message(response))
    if response.status_code == 204:
        return None
    payload = response.json()
    if isinstance(payload, dict) and "success" in payload:
        if not payload.get("success"):
            raise ApiError(response.status_code, str(payload.get("error") or "Request failed"))
        return payload.get("data")
    return payload
