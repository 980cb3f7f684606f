import asyncio
import logging
from datetime import date
from typing import Any

from shelfmatch.adapters.catalog.openlibrary import subject_slug
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


class MockCatalogAdapter(CatalogPort):
    """
    In-memory catalog for offline runs and tests.

    Lookups are served from plain dicts. Any name, key, or subject listed in
    ``failing`` raises CatalogError, and ``latency`` delays every call so
    concurrency can be observed through ``max_in_flight``.
    """

    def __init__(
        self,
        authors: dict[str, list[AuthorCandidate]] | None = None,
        author_works: dict[str, list[AuthorWork]] | None = None,
        subject_works: dict[str, list[SubjectWork]] | None = None,
        editions: dict[str, list[Edition]] | None = None,
        descriptions: dict[str, Any] | None = None,
        failing: set[str] | None = None,
        latency: float = 0.0,
    ) -> None:
        self._authors = {k.strip().lower(): v for k, v in (authors or {}).items()}
        self._author_works = author_works or {}
        self._subject_works = {
            subject_slug(k): v for k, v in (subject_works or {}).items()
        }
        self._editions = editions or {}
        self._descriptions = descriptions or {}
        self.failing = failing or set()
        self.latency = latency
        self.calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _call(self, operation: str, target: str) -> None:
        self.calls.append((operation, target))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            if target in self.failing:
                raise CatalogError(f"{operation} failed for {target!r}")
        finally:
            self.in_flight -= 1

    def calls_for(self, operation: str) -> list[str]:
        return [target for op, target in self.calls if op == operation]

    async def search_authors(self, name: str) -> list[AuthorCandidate]:
        await self._call("search_authors", name)
        return list(self._authors.get(name.strip().lower(), []))

    async def get_author_works(self, author_key: str, limit: int) -> list[AuthorWork]:
        await self._call("get_author_works", author_key)
        return list(self._author_works.get(author_key, []))[:limit]

    async def get_subject_works(self, subject: str, limit: int) -> list[SubjectWork]:
        await self._call("get_subject_works", subject)
        return list(self._subject_works.get(subject_slug(subject), []))[:limit]

    async def get_work_editions(self, work_key: str, limit: int) -> list[Edition]:
        await self._call("get_work_editions", work_key)
        return list(self._editions.get(work_key, []))[:limit]

    async def get_work(self, work_key: str) -> WorkDetail:
        await self._call("get_work", work_key)
        return WorkDetail(
            key=work_key,
            description=Description.decode(self._descriptions.get(work_key)),
        )

    @classmethod
    def sample(cls, today: date | None = None) -> "MockCatalogAdapter":
        """A small catalog matching the seeded readers, dated relative to today."""
        year = (today or date.today()).year
        logger.info("MockCatalog: using built-in sample data (year=%d)", year)

        def author(name: str, key: str, works: int) -> list[AuthorCandidate]:
            return [AuthorCandidate(name=name, key=key, work_count=works)]

        return cls(
            authors={
                "Andy Weir": author("Andy Weir", "OL7234434A", 40),
                "Brandon Sanderson": author("Brandon Sanderson", "OL1394865A", 250),
                "Arthur C. Clarke": author("Arthur C. Clarke", "OL27349A", 900),
                "Ursula K. Le Guin": author("Ursula K. Le Guin", "OL31574A", 600),
                "H.G. Wells": author("H. G. Wells", "OL13066A", 3000),
                "George R. R. Martin": author("George R. R. Martin", "OL234664A", 300),
                "Robert Jordan": author("Robert Jordan", "OL233573A", 200),
                "Neil Gaiman": author("Neil Gaiman", "OL53305A", 700),
                "Robin Hobb": author("Robin Hobb", "OL25379A", 120),
                "Steven Erikson": author("Steven Erikson", "OL1399062A", 90),
                "Jon Krakauer": author("Jon Krakauer", "OL25823A", 60),
                "David Grann": author("David Grann", "OL6540183A", 30),
            },
            author_works={
                "OL7234434A": [AuthorWork("The Martian", ("Science Fiction", "Mars"))],
                "OL1394865A": [AuthorWork("Mistborn", ("Fantasy", "Magic"))],
                "OL27349A": [AuthorWork("Rendezvous with Rama", ("Science fiction",))],
                "OL31574A": [
                    AuthorWork("A Wizard of Earthsea", ("Fantasy", "Wizards")),
                    AuthorWork("The Dispossessed", ("Science fiction", "Utopias")),
                ],
                "OL13066A": [AuthorWork("The Time Machine", ("Science fiction", "Time travel"))],
                "OL234664A": [AuthorWork("A Game of Thrones", ("Fantasy", "Fiction"))],
                "OL233573A": [AuthorWork("The Eye of the World", ("Fantasy",))],
                "OL53305A": [
                    AuthorWork("American Gods", ("Fantasy", "Mythology")),
                    AuthorWork("Neverwhere", ("Fantasy", "London")),
                ],
                "OL25379A": [AuthorWork("Assassin's Apprentice", ("Fantasy",))],
                "OL1399062A": [AuthorWork("Gardens of the Moon", ("Fantasy", "War"))],
                "OL25823A": [AuthorWork("Into Thin Air", ("Mountaineering", "Biography"))],
                "OL6540183A": [AuthorWork("Killers of the Flower Moon", ("History", "Biography"))],
            },
            subject_works={
                "fantasy": [
                    SubjectWork("OL100W", "The Lantern Court", ("Mira Okafor",), (str(year),)),
                    SubjectWork("OL101W", "Salt and Sorcery", ("Ivo Brandt",), (), year - 1),
                    SubjectWork("OL102W", "Ash Orchard", ("Lena Voss",), (f"May 4, {year - 2}",)),
                    SubjectWork("OL103W", "The Long Ember", ("Tomas Reyes",), (str(year + 3),)),
                ],
                "science fiction": [
                    SubjectWork("OL200W", "Orbit of Glass", ("Priya Nair",), (str(year),)),
                    SubjectWork("OL201W", "Cold Relay", ("Sam Ortega",), (), year - 1),
                ],
                "biography": [
                    SubjectWork("OL300W", "A Life on the Ridge", ("Hana Ito",), (str(year - 1),)),
                ],
            },
            descriptions={
                "OL100W": "A court of lantern-bearers guards the last light of a dying city.",
                "OL101W": {"type": "/type/text", "value": "Smugglers discover that salt can bind spirits."},
                "OL200W": {"value": "A glass habitat drifts between two failing stations."},
                "OL300W": "A climber's memoir of three decades in the high Himalaya.",
            },
        )
