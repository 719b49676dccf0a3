"""Async GraphQL client for the Wiki.js API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)

# Wiki.js error code for "a page already exists at this path"
PAGE_DUPLICATE_CODE = 6002

_RESPONSE_RESULT = "responseResult { succeeded errorCode slug message }"

CREATE_PAGE = f"""
mutation CreatePage(
  $content: String!, $description: String!, $editor: String!, $isPrivate: Boolean!,
  $isPublished: Boolean!, $locale: String!, $path: String!, $tags: [String]!, $title: String!
) {{
  pages {{
    create(
      content: $content, description: $description, editor: $editor, isPrivate: $isPrivate,
      isPublished: $isPublished, locale: $locale, path: $path, tags: $tags, title: $title
    ) {{
      {_RESPONSE_RESULT}
      page {{ id title path }}
    }}
  }}
}}
"""

UPDATE_PAGE = f"""
mutation UpdatePage(
  $id: Int!, $content: String!, $description: String!, $editor: String!, $isPrivate: Boolean!,
  $isPublished: Boolean!, $locale: String!, $path: String!, $tags: [String]!, $title: String!
) {{
  pages {{
    update(
      id: $id, content: $content, description: $description, editor: $editor,
      isPrivate: $isPrivate, isPublished: $isPublished, locale: $locale, path: $path,
      tags: $tags, title: $title
    ) {{
      {_RESPONSE_RESULT}
      page {{ id title path }}
    }}
  }}
}}
"""

LIST_PAGES = """
query ListPages($locale: String, $limit: Int) {
  pages {
    list(locale: $locale, limit: $limit, orderBy: CREATED, orderByDirection: DESC) {
      id path locale title createdAt
    }
  }
}
"""

SINGLE_PAGE = """
query SinglePage($id: Int!) {
  pages {
    single(id: $id) {
      id path locale title description content isPublished updatedAt
    }
  }
}
"""

SYSTEM_INFO = """
query {
  system { info { currentVersion latestVersion hostname operatingSystem } }
}
"""


class WikiError(RuntimeError):
    """Raised when the wiki rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WikiPageConflictError(WikiError):
    """Raised when a page already exists at the requested path."""


@dataclass
class WikiPage:
    title: str
    path: str
    content: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    locale: str = "en"
    editor: str = "markdown"
    is_private: bool = False
    is_published: bool = True

    def variables(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "path": self.path,
            "content": self.content,
            "description": self.description,
            "editor": self.editor,
            "isPrivate": self.is_private,
            "isPublished": self.is_published,
            "locale": self.locale,
            "tags": self.tags,
        }


def graphql_endpoint(base_url: str) -> str:
    base = base_url.rstrip("/")
    return base if base.endswith("/graphql") else f"{base}/graphql"


def _is_conflict(message: str, code: Any = None) -> bool:
    return code == PAGE_DUPLICATE_CODE or "already exists" in message.lower()


class WikiClient:
    """Thin wrapper over ``httpx.AsyncClient`` with bearer-token auth."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        verify: bool = True,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = graphql_endpoint(base_url)
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {token}"},
            verify=verify,
            timeout=timeout,
            transport=transport,
            follow_redirects=False,
        )

    async def __aenter__(self) -> WikiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """POST a GraphQL document and return its ``data`` member.

        Raises:
            WikiPageConflictError: HTTP 409 or a duplicate-page GraphQL error.
            WikiError: Transport failure, HTTP error or GraphQL error.
        """
        try:
            response = await self._client.post(
                self.endpoint, json={"query": query, "variables": variables or {}}
            )
        except httpx.HTTPError as exc:
            raise WikiError(f"Wiki request failed: {exc}") from exc

        if response.status_code == 409:
            raise WikiPageConflictError(response.text or "Page already exists", 409)
        if response.status_code >= 400:
            raise WikiError(
                f"Wiki returned HTTP {response.status_code}: {response.text[:500]}",
                response.status_code,
            )

        payload = response.json()
        errors = payload.get("errors") or []
        if errors:
            message = "; ".join(str(e.get("message", e)) for e in errors)
            if _is_conflict(message):
                raise WikiPageConflictError(message, response.status_code)
            raise WikiError(message, response.status_code)
        return payload.get("data") or {}

    @staticmethod
    def _checked(result: dict[str, Any] | None, action: str, path: str) -> dict[str, Any]:
        result = result or {}
        outcome = result.get("responseResult") or {}
        if outcome.get("succeeded"):
            return result.get("page") or {}

        message = outcome.get("message") or "Unknown error"
        if _is_conflict(message, outcome.get("errorCode")):
            raise WikiPageConflictError(message)
        raise WikiError(f"Could not {action} page {path}: {message}")

    async def create_page(self, page: WikiPage) -> dict[str, Any]:
        data = await self.execute(CREATE_PAGE, page.variables())
        return self._checked(data.get("pages", {}).get("create"), "create", page.path)

    async def update_page(self, page_id: int, page: WikiPage) -> dict[str, Any]:
        data = await self.execute(UPDATE_PAGE, {"id": page_id, **page.variables()})
        return self._checked(data.get("pages", {}).get("update"), "update", page.path)

    async def list_pages(self, locale: str | None = None, limit: int | None = None) -> list[dict[str, Any]]:
        data = await self.execute(LIST_PAGES, {"locale": locale, "limit": limit})
        return data.get("pages", {}).get("list") or []

    async def find_page_id(self, path: str, locale: str = "en") -> int | None:
        """Return the id of the page at *path*, or None if there is none."""
        target = path.strip("/")
        for page in await self.list_pages(locale=locale):
            if str(page.get("path", "")).strip("/") == target:
                return int(page["id"])
        return None

    async def get_page(self, page_id: int) -> dict[str, Any] | None:
        data = await self.execute(SINGLE_PAGE, {"id": page_id})
        return data.get("pages", {}).get("single")

    async def system_info(self) -> dict[str, Any]:
        data = await self.execute(SYSTEM_INFO)
        return data.get("system", {}).get("info") or {}
