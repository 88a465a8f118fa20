# services/fyers_service.py
from __future__ import annotations

import hashlib
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
from dotenv import load_dotenv

from services.errors import UpstreamError

load_dotenv()

logger = logging.getLogger(__name__)

FYERS_AUTH_URL = os.getenv("FYERS_AUTH_URL", "https://api-t1.fyers.in/api/v3/validate-authcode")


def generate_app_id_hash(app_id: str, app_secret: str) -> str:
    """Fyers expects sha256("<app_id>:<app_secret>") as a hex digest."""
    return hashlib.sha256(f"{app_id}:{app_secret}".encode("utf-8")).hexdigest()


def derive_user_id(auth_code: str) -> str:
    """Fallback user key when the caller does not send one."""
    return hashlib.md5(auth_code.encode("utf-8")).hexdigest()


class FyersService:
    """Exchanges a Fyers auth code for an access token. Nothing is persisted here."""

    def __init__(self, auth_url: Optional[str] = None, timeout: Optional[float] = None):
        self.auth_url = auth_url or FYERS_AUTH_URL
        self.timeout = timeout if timeout is not None else float(os.getenv("FYERS_TIMEOUT", "10"))

    @asynccontextmanager
    async def _client(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            yield client
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as c:
                yield c

    async def exchange_auth_code(
        self,
        code: str,
        app_id: str,
        app_secret: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> Dict[str, Any]:
        body = {
            "grant_type": "authorization_code",
            "appIdHash": generate_app_id_hash(app_id, app_secret),
            "code": code,
        }
        async with self._client(client) as c:
            try:
                r = await c.post(self.auth_url, json=body)
            except httpx.HTTPError as e:
                logger.error("Fyers auth request failed: %s", type(e).__name__)
                raise UpstreamError("fyers validate-authcode request failed") from e

            if r.status_code >= 400:
                logger.error("Fyers auth returned status=%s body=%s", r.status_code, r.text[:500])
                raise UpstreamError(
                    "fyers validate-authcode rejected", upstream_status=r.status_code, body=r.text
                )

            try:
                data = r.json()
            except ValueError as e:
                raise UpstreamError("fyers returned non-JSON body", upstream_status=r.status_code) from e

        if not isinstance(data, dict) or not data.get("access_token"):
            logger.error("Fyers auth response missing access_token (status=%s)", r.status_code)
            raise UpstreamError("no access token received from Fyers", upstream_status=r.status_code)
        return data


def get_fyers_service() -> FyersService:
    return FyersService()
