"""Open Library catalog adapter over a shared httpx.AsyncClient."""

import logging
from typing import Any

import httpx

from shelfmatch.domain.errors import CatalogError
from shelfmatch.ports.catalog import (
    AuthorCandidate,
    AuthorWork,
    CatalogPort,
    Description,
    Edition,
    SubjectWork,
    WorkDetail,
)

logger = logging.getLogger(__name__)


def build_http_client(
    base_url: str,
    timeout: float,
    retries: int,
    max_connections: int,
    user_agent: str,
) -> httpx.AsyncClient:
    """Build the one outbound client shared by every request."""
    transport = httpx.AsyncHTTPTransport(
        retries=retries,
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_connections,
        ),
    )
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        transport=transport,
        headers={"User-Agent": user_agent, "Accept": "application/json"},
        follow_redirects=True,
    )


def strip_key(key: str, prefix: str) -> str:
    """'/works/OL1W' -> 'OL1W'; bare keys pass through."""
    key = key.strip()
    if key.startswith(prefix):
        key = key[len(prefix):]
    return key.strip("/")


def subject_slug(subject: str) -> str:
    return "_".join(subject.strip().lower().split())


class OpenLibraryCatalogAdapter(CatalogPort):
    """Catalog lookups against the Open Library JSON API."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _get_json(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        try:
            resp = await self._client.get(path, params=params)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise CatalogError(f"GET {path} failed: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(f"GET {path} returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise CatalogError(f"GET {path} returned {type(payload).__name__}, expected object")
        logger.debug("GET %s -> %d", path, resp.status_code)
        return payload

    async def search_authors(self, name: str) -> list[AuthorCandidate]:
        payload = await self._get_json("/search/authors.json", {"q": name})
        candidates: list[AuthorCandidate] = []
        for doc in _as_list(payload.get("docs")):
            key = _as_str(doc.get("key"))
            if not key:
                continue
            candidates.append(
                AuthorCandidate(
                    name=_as_str(doc.get("name")) or name,
                    key=strip_key(key, "/authors/"),
                    work_count=_as_int(doc.get("work_count")) or 0,
                )
            )
        return candidates

    async def get_author_works(self, author_key: str, limit: int) -> list[AuthorWork]:
        payload = await self._get_json(
            f"/authors/{author_key}/works.json", {"limit": limit}
        )
        return [
            AuthorWork(
                title=_as_str(entry.get("title")) or "",
                subjects=tuple(_as_list(entry.get("subjects"), str)),
            )
            for entry in _as_list(payload.get("entries"))
        ]

    async def get_subject_works(self, subject: str, limit: int) -> list[SubjectWork]:
        payload = await self._get_json(
            f"/subjects/{subject_slug(subject)}.json",
            {"limit": limit, "sort": "new"},
        )
        works: list[SubjectWork] = []
        for entry in _as_list(payload.get("works")):
            raw_dates = entry.get("publish_date")
            if isinstance(raw_dates, str):
                dates: tuple[str, ...] = (raw_dates,)
            else:
                dates = tuple(_as_list(raw_dates, str))

            key = _as_str(entry.get("key"))
            works.append(
                SubjectWork(
                    key=strip_key(key, "/works/") if key else None,
                    title=_as_str(entry.get("title")) or "Untitled",
                    authors=tuple(
                        name
                        for name in (
                            _as_str(a.get("name"))
                            for a in _as_list(entry.get("authors"))
                        )
                        if name
                    ),
                    publish_dates=dates,
                    first_publish_year=_as_int(entry.get("first_publish_year")),
                )
            )
        return works

    async def get_work_editions(self, work_key: str, limit: int) -> list[Edition]:
        payload = await self._get_json(
            f"/works/{work_key}/editions.json", {"limit": limit}
        )
        return [
            Edition(
                key=_as_str(entry.get("key")),
                publish_date=_as_str(entry.get("publish_date")),
            )
            for entry in _as_list(payload.get("entries"))
        ]

    async def get_work(self, work_key: str) -> WorkDetail:
        payload = await self._get_json(f"/works/{work_key}.json")
        return WorkDetail(
            key=work_key,
            description=Description.decode(payload.get("description")),
        )


def _as_list(value: Any, item_type: type = dict) -> list:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, item_type)]


def _as_str(value: Any) -> str | None:
    return value.strip() if isinstance(value, str) and value.strip() else None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
