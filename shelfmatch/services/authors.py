"""Resolve free-text author names to catalog identities."""

import logging

from shelfmatch.domain.entities import ResolvedAuthor
from shelfmatch.domain.errors import CatalogError
from shelfmatch.ports.catalog import AuthorCandidate, CatalogPort
from shelfmatch.services.fanout import bounded_map

logger = logging.getLogger(__name__)


def pick_best_candidate(candidates: list[AuthorCandidate]) -> AuthorCandidate | None:
    """Highest work_count wins; on a tie the earlier candidate is kept."""
    best: AuthorCandidate | None = None
    for candidate in candidates:
        if best is None or candidate.work_count > best.work_count:
            best = candidate
    return best


class AuthorResolver:
    """Looks up each name concurrently and keeps whatever resolves."""

    def __init__(self, catalog: CatalogPort, concurrency: int = 10) -> None:
        self._catalog = catalog
        self._concurrency = concurrency

    async def resolve(self, names: list[str]) -> list[ResolvedAuthor]:
        """
        Resolve author names, dropping any that fail or have no match.

        Blank and repeated names are looked up once. The result is in input
        order and unique by catalog key.
        """
        queries: list[str] = []
        seen_names: set[str] = set()
        for name in names:
            cleaned = name.strip()
            if cleaned and cleaned.lower() not in seen_names:
                seen_names.add(cleaned.lower())
                queries.append(cleaned)

        matches = await bounded_map(queries, self._resolve_one, self._concurrency)

        resolved: list[ResolvedAuthor] = []
        seen_keys: set[str] = set()
        for author in matches:
            if author is None or author.catalog_key in seen_keys:
                continue
            seen_keys.add(author.catalog_key)
            resolved.append(author)

        logger.info("Resolved %d of %d authors", len(resolved), len(queries))
        return resolved

    async def _resolve_one(self, name: str) -> ResolvedAuthor | None:
        try:
            candidates = await self._catalog.search_authors(name)
        except CatalogError as exc:
            logger.warning("Author lookup failed for '%s': %s", name, exc)
            return None

        best = pick_best_candidate(candidates)
        if best is None:
            logger.warning("No authors found for '%s'", name)
            return None

        return ResolvedAuthor(
            name=best.name,
            catalog_key=best.key,
            work_count=best.work_count,
        )
