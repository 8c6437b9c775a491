"""
Figma REST Client

Async client for the subset of the Figma REST API the responder needs:
comments, file structure, image export and the current user.

Uses httpx.AsyncClient with a bounded timeout on every request. The
connection pool is created lazily on first use and released by close().
"""

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..common.schemas import Comment

logger = logging.getLogger("responder.figma.client")

FIGMA_API_BASE = "https://api.figma.com/v1"


class FigmaAPIError(Exception):
    """Non-success response from the Figma API."""

    def __init__(self, status_code: int, reason: str = "", body: str = ""):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"Figma API error: {status_code} {reason} - {body}".rstrip(" -"))


class FigmaClient:
    """
    Token-scoped Figma API client.

    Usage:
        async with FigmaClient(token) as figma:
            comments = await figma.list_comments("FILE_KEY")
            await figma.post_reply("FILE_KEY", "Looks good", parent_id=comments[0].id)
    """

    def __init__(
        self,
        token: str,
        api_base: str = FIGMA_API_BASE,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            token: Figma personal access token
            api_base: API root, without trailing slash
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._token = token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "FigmaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _ensure_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._http

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Authenticated request against the API; returns the decoded JSON body."""
        logger.debug("%s %s", method, endpoint)
        # The token header is set per request so image downloads never carry it
        headers = {
            "X-Figma-Token": self._token,
            "Content-Type": "application/json",
        }
        response = await self._ensure_http().request(
            method,
            f"{self.api_base}{endpoint}",
            params=params,
            json=json_body,
            headers=headers,
        )
        if response.is_error:
            raise FigmaAPIError(response.status_code, response.reason_phrase, response.text)
        return response.json()

    # ------------------------------------------------------------------ comments

    async def list_comments(self, file_key: str) -> List[Comment]:
        """All comments of a file, in the order Figma returns them."""
        data = await self._request("GET", f"/files/{file_key}/comments")
        return [Comment.from_api(item) for item in data.get("comments", [])]

    async def get_comment(self, file_key: str, comment_id: str) -> Optional[Comment]:
        """A single comment; Figma has no per-comment endpoint, so this lists them all."""
        for comment in await self.list_comments(file_key):
            if comment.id == comment_id:
                return comment
        return None

    async def post_reply(self, file_key: str, message: str, parent_id: str) -> Comment:
        """Post message as a reply in the thread rooted at parent_id."""
        data = await self._request(
            "POST",
            f"/files/{file_key}/comments",
            json_body={"message": message, "comment_id": parent_id},
        )
        return Comment.from_api(data)

    # ------------------------------------------------------------------ files

    async def get_file(self, file_key: str, depth: int = 10) -> Dict[str, Any]:
        """File structure (document tree without geometry)."""
        return await self._request("GET", f"/files/{file_key}", params={"depth": depth})

    async def get_document_name(self, file_key: str) -> str:
        data = await self.get_file(file_key)
        return data.get("name", file_key)

    # ------------------------------------------------------------------ images

    async def get_images(
        self,
        file_key: str,
        node_ids: List[str],
        format: str = "png",
        scale: float = 2,
    ) -> Dict[str, Optional[str]]:
        """
        Render nodes and return {node_id: temporary image URL or None}.

        Raises:
            FigmaAPIError: If the render request fails or reports an error
        """
        data = await self._request(
            "GET",
            f"/images/{file_key}",
            params={"ids": ",".join(node_ids), "format": format, "scale": scale},
        )
        if data.get("err"):
            raise FigmaAPIError(400, "Images API error", str(data["err"]))
        return data.get("images") or {}

    async def download_image(self, image_url: str) -> str:
        """Download a rendered image and return it base64-encoded."""
        response = await self._ensure_http().get(image_url)
        if response.is_error:
            raise FigmaAPIError(response.status_code, "Failed to download image", "")
        return base64.b64encode(response.content).decode("ascii")

    # ------------------------------------------------------------------ account

    async def get_current_user(self) -> Dict[str, Any]:
        """The token owner ({id, handle, email}); used to verify a token."""
        return await self._request("GET", "/me")
