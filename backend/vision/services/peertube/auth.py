"""PeerTube admin token management - password grant with a locked, lazily refreshed cache"""

import logging
import threading
import time
from typing import Callable, Optional

import httpx

from vision.core.errors import RemoteServiceError
from vision.core.metrics import peertube_token_refresh_counter

peertube_logger = logging.getLogger("peertube")


class PeerTubeTokenProvider:
    """Owns the admin bearer token for one PeerTube instance.

    One instance is built at startup and handed to whatever needs a token.
    Reads are lock-free; a refresh runs under a lock and re-checks the cache
    once inside it, so callers racing on an expired token refresh only once.
    """

    def __init__(
        self,
        http: httpx.Client,
        username: str,
        password: str,
        expiry_margin: int = 60,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ):
        self._http = http
        self._username = username
        self._password = password
        self._expiry_margin = expiry_margin
        self._timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._access_token: Optional[str] = None
        self._expires_at: float = 0.0

    def _is_valid(self) -> bool:
        return self._access_token is not None and self._clock() < self._expires_at

    def get_access_token(self) -> str:
        """Return the cached token, refreshing it when absent or expired"""
        if self._is_valid():
            return self._access_token

        with self._lock:
            # Another caller may have refreshed while we waited
            if self._is_valid():
                return self._access_token
            return self._refresh()

    def invalidate(self) -> None:
        """Drop the cached token so the next call re-authenticates"""
        with self._lock:
            self._access_token = None
            self._expires_at = 0.0

    def initialize(self) -> None:
        """Warm the cache at startup"""
        self.get_access_token()
        peertube_logger.info("PeerTube authentication initialized")

    def _refresh(self) -> str:
        issued_at = self._clock()
        try:
            client_response = self._http.get("/api/v1/oauth-clients/local", timeout=self._timeout)
            client_response.raise_for_status()
            client = client_response.json()

            token_response = self._http.post(
                "/api/v1/users/token",
                data={
                    "client_id": client["client_id"],
                    "client_secret": client["client_secret"],
                    "grant_type": "password",
                    "username": self._username,
                    "password": self._password,
                    "response_type": "code",
                    "scope": "manage:users",
                },
                timeout=self._timeout,
            )
            token_response.raise_for_status()
            token_json = token_response.json()
            access_token = token_json["access_token"]
            expires_in = int(token_json.get("expires_in", 0))
        except httpx.HTTPStatusError as e:
            peertube_logger.error(
                f"PeerTube token request failed: {e.response.status_code} - {e.response.text[:500]}"
            )
            peertube_token_refresh_counter.labels(status="failure").inc()
            raise RemoteServiceError(
                "Failed to authenticate with PeerTube",
                details={"status": e.response.status_code},
                status=e.response.status_code,
            ) from e
        except (httpx.RequestError, KeyError, ValueError) as e:
            peertube_logger.error(f"PeerTube token request failed: {type(e).__name__}: {e}")
            peertube_token_refresh_counter.labels(status="failure").inc()
            raise RemoteServiceError("Failed to authenticate with PeerTube") from e

        self._access_token = access_token
        self._expires_at = issued_at + expires_in - self._expiry_margin
        peertube_token_refresh_counter.labels(status="success").inc()
        peertube_logger.info(f"Refreshed PeerTube access token (expires in {expires_in}s)")
        return access_token
