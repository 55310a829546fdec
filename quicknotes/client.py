"""
QuickNotes — Python API Client
================================

What:  Async client for the QuickNotes REST API, mirroring what the browser
       client does: sign up / sign in, keep the bearer token, and call the
       note endpoints with it.
How:   One httpx.AsyncClient per QuickNotesClient. The token is kept in
       memory and, when a TokenStore is given, persisted to a file so later
       processes reuse the session.

Usage:
    async with QuickNotesClient("http://localhost:3001", TokenStore()) as qn:
        await qn.login("a@example.com", "secret")
        note = await qn.create_note("Groceries", "milk", ["home"])
        hits = await qn.search_notes_by_tags(["home", "work"])
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_PATH = Path.home() / ".quicknotes" / "token"
DEFAULT_TIMEOUT = 10.0


class ClientError(Exception):
    """
    Raised for any non-2xx response, or when the server can't be reached.

    `status` is the HTTP status code (0 for transport failures) and
    `message` is the server's human-readable message when it sent one.
    """

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


class TokenStore:
    """Bearer token persisted in a single file (mode 0600)."""

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(path) if path is not None else DEFAULT_TOKEN_PATH

    def load(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class QuickNotesClient:

    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.token_store = token_store
        self.token: Optional[str] = token_store.load() if token_store else None
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self) -> "QuickNotesClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    # ── Auth ────────────────────────────────────────────────────────────

    async def register(self, email: str, password: str) -> Dict[str, Any]:
        """Create an account; the returned token becomes the active session."""
        data = await self._request(
            "POST", "/api/auth/register",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self._set_token(data["token"])
        return data

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        data = await self._request(
            "POST", "/api/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self._set_token(data["token"])
        return data

    def logout(self) -> None:
        """Forget the token locally. Tokens are stateless; nothing is sent."""
        self.token = None
        if self.token_store:
            self.token_store.clear()

    async def me(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/auth/me")

    # ── Notes ───────────────────────────────────────────────────────────

    async def list_notes(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/notes")

    async def get_note(self, note_id: int) -> Dict[str, Any]:
        return await self._request("GET", f"/api/notes/{note_id}")

    async def create_note(
        self,
        title: str,
        content: str = "",
        tags: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        return await self._request(
            "POST", "/api/notes",
            json={"title": title, "content": content, "tags": list(tags or [])},
        )

    async def update_note(
        self,
        note_id: int,
        title: str,
        content: str = "",
        tags: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        """Replace title, content and tags of a note (full replacement)."""
        return await self._request(
            "PUT", f"/api/notes/{note_id}",
            json={"title": title, "content": content, "tags": list(tags or [])},
        )

    async def delete_note(self, note_id: int) -> None:
        await self._request("DELETE", f"/api/notes/{note_id}")

    async def search_notes_by_tags(
        self, tags: Union[str, Iterable[str]]
    ) -> List[Dict[str, Any]]:
        """Notes carrying ANY of the tags. Accepts a list or a comma string."""
        query = tags if isinstance(tags, str) else ",".join(tags)
        return await self._request(
            "GET", "/api/notes/search/by-tags", params={"tags": query}
        )

    # ── Internals ───────────────────────────────────────────────────────

    def _set_token(self, token: str) -> None:
        self.token = token
        if self.token_store:
            self.token_store.save(token)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        headers = {}
        if authenticated and self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ClientError(0, f"Network error: {e}") from e

        if response.status_code == 204:
            return None
        if response.is_success:
            return response.json()
        raise ClientError(response.status_code, _error_message(response))


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or response.reason_phrase
    return response.reason_phrase
