"""PeerTube API client - account provisioning, uploads, details, rename and delete"""

import logging
from typing import Any, Dict, IO, List, Optional, Type

import httpx

from vision.core.errors import (
    NotFound, RemoteServiceError, RemoteUploadFailed, RemoteDeleteFailed, ChannelCreationFailed
)
from vision.services.peertube.auth import PeerTubeTokenProvider

peertube_logger = logging.getLogger("peertube")


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


def _json_body(response: httpx.Response, error_cls: Type[RemoteServiceError], message: str) -> Dict[str, Any]:
    """Parsed JSON object of a successful response; anything else is a remote failure"""
    try:
        body = response.json()
    except ValueError as e:
        raise error_cls(f"{message}: response was not JSON", details=response.text[:500], status=response.status_code) from e
    if not isinstance(body, dict):
        raise error_cls(f"{message}: unexpected response body", details=body, status=response.status_code)
    return body


class PeerTubeClient:
    """Authenticated calls against one PeerTube instance.

    Every request carries the admin bearer token. A 401 drops the cached
    token and the request is sent once more with a fresh one.
    """

    def __init__(
        self,
        http: httpx.Client,
        tokens: PeerTubeTokenProvider,
        base_url: str,
        request_timeout: float = 30.0,
        upload_timeout: float = 30 * 60.0,
        video_quota: int = 1024 * 1024 * 1024,
        channel_attempts: int = 3,
    ):
        self._http = http
        self.tokens = tokens
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self.upload_timeout = upload_timeout
        self.video_quota = video_quota
        self.channel_attempts = channel_attempts

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.BaseTransport] = None) -> "PeerTubeClient":
        """Build the client and its token provider from application settings"""
        base_url = settings.PEERTUBE_INSTANCE_URL.rstrip("/")
        http = httpx.Client(base_url=base_url, timeout=settings.PEERTUBE_REQUEST_TIMEOUT, transport=transport)
        tokens = PeerTubeTokenProvider(
            http,
            settings.PEERTUBE_ADMIN_USERNAME,
            settings.PEERTUBE_ADMIN_PASSWORD,
            expiry_margin=settings.PEERTUBE_TOKEN_EXPIRY_MARGIN,
            timeout=settings.PEERTUBE_REQUEST_TIMEOUT,
        )
        return cls(
            http,
            tokens,
            base_url,
            request_timeout=settings.PEERTUBE_REQUEST_TIMEOUT,
            upload_timeout=settings.PEERTUBE_UPLOAD_TIMEOUT,
            video_quota=settings.PEERTUBE_USER_VIDEO_QUOTA,
            channel_attempts=settings.PEERTUBE_CHANNEL_ATTEMPTS,
        )

    def close(self) -> None:
        self._http.close()

    def build_url(self, path: Optional[str]) -> str:
        """Absolute URL on the instance for a path like /lazy-static/thumbnails/x.jpg"""
        if not path:
            return ""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"

    def embed_url(self, uuid: Optional[str]) -> str:
        return self.build_url(f"/videos/embed/{uuid}") if uuid else ""

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        error_cls: Type[RemoteServiceError],
        message: str,
        rewind: Optional[IO] = None,
        **kwargs,
    ) -> httpx.Response:
        kwargs.setdefault("timeout", self.request_timeout)
        for attempt in range(2):
            try:
                token = self.tokens.get_access_token()
            except RemoteServiceError as e:
                if isinstance(e, error_cls):
                    raise
                raise error_cls(f"{message}: {e.message}", details=e.details, status=e.status) from e

            if rewind is not None:
                rewind.seek(0)

            try:
                response = self._http.request(
                    method,
                    f"/api/v1{path}",
                    headers={"Authorization": f"Bearer {token}"},
                    **kwargs,
                )
            except httpx.TimeoutException as e:
                peertube_logger.error(f"PeerTube {method} {path} timed out: {e}")
                raise error_cls(f"{message}: request timed out") from e
            except httpx.RequestError as e:
                peertube_logger.error(f"PeerTube {method} {path} failed: {type(e).__name__}: {e}")
                raise error_cls(f"{message}: {type(e).__name__}") from e

            if response.status_code == 401 and attempt == 0:
                peertube_logger.warning(f"PeerTube rejected token on {method} {path}, re-authenticating")
                self.tokens.invalidate()
                continue
            return response

    def _check(self, response: httpx.Response, error_cls: Type[RemoteServiceError], message: str) -> None:
        if response.is_success:
            return
        body = _error_body(response)
        peertube_logger.error(f"{message}: HTTP {response.status_code} - {body}")
        raise error_cls(message, details=body, status=response.status_code)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, email: str, password: str, owner_id) -> Dict[str, Any]:
        """Create a PeerTube user named after owner_id plus a channel for it.

        Channel names that already exist (409) are retried with a numeric
        suffix until channel_attempts is exhausted.
        """
        username = str(owner_id)

        response = self._request(
            "POST", "/users", RemoteServiceError, "Failed to create PeerTube user",
            json={
                "username": username,
                "email": email,
                "password": password,
                "role": 2,  # Standard user
                "videoQuota": self.video_quota,
            },
        )
        self._check(response, RemoteServiceError, "Failed to create PeerTube user")
        user_json = _json_body(response, RemoteServiceError, "Failed to create PeerTube user").get("user") or {}
        remote_user_id = user_json.get("id")
        account_id = (user_json.get("account") or {}).get("id")
        peertube_logger.info(f"Created PeerTube user {username} (id {remote_user_id})")

        channel_name = f"{username}_chn"
        channel_json = None
        for attempt in range(1, self.channel_attempts + 1):
            response = self._request(
                "POST", "/video-channels", RemoteServiceError, "Failed to create PeerTube channel",
                json={
                    "displayName": f"{username}'s Channel",
                    "name": channel_name,
                    "ownerAccountId": account_id,
                },
            )
            if response.status_code == 409:
                peertube_logger.warning(
                    f"Channel name {channel_name} already taken (attempt {attempt}/{self.channel_attempts})"
                )
                channel_name = f"{username}_chn_{attempt}"
                continue
            self._check(response, RemoteServiceError, "Failed to create PeerTube channel")
            channel_json = _json_body(response, RemoteServiceError, "Failed to create PeerTube channel")
            break

        if channel_json is None:
            raise ChannelCreationFailed(details={"username": username, "attempts": self.channel_attempts})

        channel_id = (
            (channel_json.get("videoChannel") or {}).get("id")
            or channel_json.get("id")
            or (channel_json.get("channel") or {}).get("id")
        )
        if not channel_id:
            peertube_logger.error(f"Channel ID not found in response: {channel_json}")
            raise RemoteServiceError("Channel was created but ID could not be determined", details=channel_json)

        peertube_logger.info(f"Created PeerTube channel {channel_name} (id {channel_id}) for user {username}")
        return {
            "user_id": remote_user_id,
            "account_id": account_id,
            "username": username,
            "email": email,
            "channel_id": channel_id,
            "channel_name": channel_name,
            "urls": {
                "account": self.build_url(f"/accounts/{username}"),
                "channel": self.build_url(f"/video-channels/{channel_name}"),
            },
        }

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    def upload_video(
        self,
        channel_id: int,
        metadata: Dict[str, Any],
        file_path: str,
        filename: str,
        content_type: str,
    ) -> Dict[str, Any]:
        """Multipart upload into a channel. Returns the `video` object of the response."""
        tags: List[str] = [t.strip() for t in metadata.get("tags") or [] if t and t.strip()]
        data = {
            "name": metadata["name"],
            "channelId": str(channel_id),
            "description": metadata.get("description") or "",
            "privacy": str(metadata.get("privacy", 1)),
            "category": str(metadata.get("category", 1)),
            "license": str(metadata.get("license", 1)),
            "language": metadata.get("language") or "en",
            "nsfw": "false",
            "commentsEnabled": "true",
            "downloadEnabled": "true",
        }
        if tags:
            data["tags[]"] = tags

        try:
            fh = open(file_path, "rb")
        except OSError as e:
            raise RemoteUploadFailed(f"Cannot read upload file: {e}") from e

        with fh:
            response = self._request(
                "POST", "/videos/upload", RemoteUploadFailed, "PeerTube upload failed",
                rewind=fh,
                data=data,
                files={"videofile": (filename, fh, content_type)},
                timeout=self.upload_timeout,
            )
        self._check(response, RemoteUploadFailed, "PeerTube upload failed")

        video = _json_body(response, RemoteUploadFailed, "PeerTube upload failed").get("video")
        if not video or "id" not in video:
            raise RemoteUploadFailed("PeerTube upload response did not include a video", details=_error_body(response))
        peertube_logger.info(f"Uploaded {filename} to channel {channel_id} as PeerTube video {video['id']}")
        return video

    def get_video_details(self, remote_video_id) -> Dict[str, Any]:
        """Video record; empty streamingPlaylists just means PeerTube is still transcoding"""
        response = self._request(
            "GET", f"/videos/{remote_video_id}", RemoteServiceError, "Failed to fetch PeerTube video"
        )
        if response.status_code == 404:
            raise NotFound("Video not found on PeerTube", details={"remote_video_id": remote_video_id})
        self._check(response, RemoteServiceError, "Failed to fetch PeerTube video")
        return _json_body(response, RemoteServiceError, "Failed to fetch PeerTube video")

    def delete_video(self, remote_video_id) -> None:
        """Delete a remote video; a 404 means it is already gone"""
        response = self._request(
            "DELETE", f"/videos/{remote_video_id}", RemoteDeleteFailed, "PeerTube delete failed"
        )
        if response.status_code == 404:
            peertube_logger.info(f"PeerTube video {remote_video_id} already deleted")
            return
        self._check(response, RemoteDeleteFailed, "PeerTube delete failed")
        peertube_logger.info(f"Deleted PeerTube video {remote_video_id}")

    def rename_video(self, remote_video_id, new_title: str) -> None:
        response = self._request(
            "PUT", f"/videos/{remote_video_id}", RemoteServiceError, "PeerTube rename failed",
            json={"name": new_title},
        )
        self._check(response, RemoteServiceError, "PeerTube rename failed")
