"""OpenAlex works search, used as the source search when no LLM is configured."""

import html
import logging
from typing import Any

import httpx

from manuscripta.models.paper import GroundedSource

logger = logging.getLogger(__name__)

OPENALEX_WORKS_URL = "https://api.openalex.org/works"
TIMEOUT = 10.0
MAX_RESULTS = 5
SUMMARY_WORDS = 60


def reconstruct_abstract(inv_index: dict[str, list[int]]) -> str:
    """Rebuild abstract text from OpenAlex's inverted index."""
    word_positions: dict[int, str] = {}
    for word, pos_list in inv_index.items():
        for pos in pos_list:
            word_positions[pos] = word
    return " ".join(word_positions[i] for i in sorted(word_positions))


def work_to_source(work: dict[str, Any]) -> GroundedSource:
    """Map an OpenAlex work record onto a search candidate."""
    authors = [
        auth.get("author", {}).get("display_name", "")
        for auth in work.get("authorships", [])
    ]
    authors = [a for a in authors if a]

    summary = ""
    inv_index = work.get("abstract_inverted_index")
    if inv_index:
        words = reconstruct_abstract(inv_index).split()
        summary = " ".join(words[:SUMMARY_WORDS])
        if len(words) > SUMMARY_WORDS:
            summary += "…"

    year = work.get("publication_year")
    uri = work.get("doi") or work.get("id") or ""
    return GroundedSource(
        title=html.unescape(work.get("display_name") or work.get("title") or ""),
        authors=", ".join(authors),
        year=str(year) if year else "",
        summary=html.unescape(summary),
        uri=uri,
    )


async def search_sources(query: str) -> list[GroundedSource]:
    """Search OpenAlex works matching *query*.

    Raises:
        httpx.HTTPError: On transport errors or a non-2xx response
    """
    params = {"search": query, "per_page": MAX_RESULTS}
    async with httpx.AsyncClient(timeout=TIMEOUT) as client:
        response = await client.get(OPENALEX_WORKS_URL, params=params)
        response.raise_for_status()
        data = response.json()
    results = data.get("results") or []
    logger.debug("OpenAlex returned %d works for %r", len(results), query)
    return [work_to_source(work) for work in results[:MAX_RESULTS]]
