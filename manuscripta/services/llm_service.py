"""Gemini-backed generation services (topics, sections, sources, queries).

Transport errors propagate to the caller, which decides whether a failure
is silent or user-facing. Malformed JSON in a response is logged and
replaced with an empty default.
"""

import json
import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from manuscripta.config import LLMProfile
from manuscripta.models.paper import GroundedSource
from manuscripta.models.project import IMPORT_SECTIONS, Methodology, Question
from manuscripta.utils.text import strip_code_fence, text_to_html

logger = logging.getLogger(__name__)

FALLBACK_SOURCE_URI = "https://scholar.google.com"
INGEST_CHAR_LIMIT = 10000
MAX_TOPICS = 5


# ---------------------------------------------------------------------------
# Response parsing helpers
# ---------------------------------------------------------------------------

def parse_json(text: Optional[str], default: Any, what: str = "response") -> Any:
    """Parse JSON from a model response, returning *default* on failure."""
    try:
        return json.loads(strip_code_fence(text or ""))
    except (TypeError, ValueError) as e:
        logger.error("Failed to parse %s: %s", what, e)
        return default


def grounding_uris(response: Any) -> list[str]:
    """Web URIs from the first candidate's grounding metadata, in order."""
    try:
        chunks = response.candidates[0].grounding_metadata.grounding_chunks or []
    except (AttributeError, IndexError, TypeError):
        return []
    uris = []
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uris.append(getattr(web, "uri", None) or "")
    return uris


def attach_uris(items: list[dict[str, Any]], uris: list[str]) -> list[GroundedSource]:
    """Pair parsed sources with grounding URIs by position.

    A source without a matching URI gets the first URI, or the Scholar
    home page when the response had no grounding at all.
    """
    fallback = (uris[0] if uris and uris[0] else "") or FALLBACK_SOURCE_URI
    sources = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        uri = uris[index] if index < len(uris) and uris[index] else fallback
        sources.append(
            GroundedSource(
                title=str(item.get("title", "")),
                authors=str(item.get("authors", "")),
                year=str(item.get("year", "")),
                summary=str(item.get("summary", "")),
                uri=uri,
            )
        )
    return sources


def parse_questions(items: Any) -> list[Question]:
    """Build questions from parsed JSON, assigning ids where missing."""
    if not isinstance(items, list):
        return []
    questions = []
    for index, item in enumerate(items, 1):
        if not isinstance(item, dict) or not item.get("label"):
            continue
        item = {"id": item.get("id") or f"q{index}", **{k: v for k, v in item.items() if k != "id"}}
        questions.append(Question.from_dict(item))
    return questions


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class GeminiService:
    """Async wrapper around the Gemini API for the authoring workflow."""

    def __init__(self, profile: LLMProfile, client: Optional[genai.Client] = None):
        """Initialize service.

        Args:
            profile: Active LLM profile (model id and API key)
            client: Pre-built client (tests); created from the profile otherwise
        """
        self.profile = profile
        self.model = profile.model
        self._client = client or genai.Client(api_key=profile.api_key)

    async def _generate(self, prompt: str, config: Optional[types.GenerateContentConfig] = None):
        return await self._client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=config,
        )

    @staticmethod
    def _json_config(schema: types.Schema) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )

    async def suggest_topics(self, theme: str) -> list[str]:
        """Suggest up to five publication-ready research titles for *theme*."""
        prompt = (
            f'Suggest 5 specific, high-level academic research titles based on this theme: "{theme}". '
            "The titles must be professional, academic, and ready for publication. "
            "Format the output as a simple JSON array of strings."
        )
        schema = types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING))
        response = await self._generate(prompt, self._json_config(schema))
        topics = parse_json(response.text, [], "topics")
        if not isinstance(topics, list):
            return []
        return [str(t) for t in topics if str(t).strip()][:MAX_TOPICS]

    async def extract_sections(self, raw_content: str) -> dict[str, str]:
        """Split a manuscript into the import sections.

        Keys missing from the response default to ``""``.
        """
        names = ", ".join(IMPORT_SECTIONS)
        prompt = (
            f'I have a research manuscript with the following content: "{raw_content[:INGEST_CHAR_LIMIT]}". '
            f"Please extract and categorize the content into the following sections: {names}. "
            "Format the output as a JSON object where keys are the section names exactly."
        )
        schema = types.Schema(
            type=types.Type.OBJECT,
            properties={name: types.Schema(type=types.Type.STRING) for name in IMPORT_SECTIONS},
            required=list(IMPORT_SECTIONS),
        )
        response = await self._generate(prompt, self._json_config(schema))
        data = parse_json(response.text, {}, "manuscript sections")
        if not isinstance(data, dict):
            data = {}
        return {name: str(data.get(name) or "") for name in IMPORT_SECTIONS}

    async def generate_section(
        self,
        topic: str,
        methodology: Methodology,
        section: str = "Background",
    ) -> str:
        """Draft *section* for the project titled *topic*; returns HTML."""
        prompt = (
            f'Write a professional "{section}" section for a research project titled "{topic}". '
            f"The methodology used is {methodology.value}. "
            "Structure the response with academic depth, discussing general context, the problem, "
            "and current trends in the field. Keep it around 400 words. "
            "Do not use markdown headers, just paragraphs."
        )
        response = await self._generate(prompt)
        return text_to_html(response.text or "")

    async def generate_questionnaire(self, topic: str, methodology: Methodology) -> list[Question]:
        """Draft survey questions (eight are requested; any count is accepted)."""
        prompt = (
            f'Design a research questionnaire with 8 questions for a study titled "{topic}" '
            f"using a {methodology.value} methodology. "
            'Each question has a "type" ("multiple-choice", "text" or "rating"), a "label", '
            'and for multiple-choice questions an "options" array of strings. '
            "Format the output as a JSON array of objects."
        )
        schema = types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "type": types.Schema(type=types.Type.STRING),
                    "label": types.Schema(type=types.Type.STRING),
                    "options": types.Schema(
                        type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)
                    ),
                },
                required=["type", "label"],
            ),
        )
        response = await self._generate(prompt, self._json_config(schema))
        return parse_questions(parse_json(response.text, [], "questionnaire"))

    async def search_sources(self, query: str) -> list[GroundedSource]:
        """Search for real academic papers with Google Search grounding."""
        prompt = (
            f'Search for real, recent academic papers, journals, and scholarly articles related to the topic: "{query}". '
            "For each paper, provide: Title, Main Authors, Publication Year, and a 2-sentence Summary. "
            "Format your response as a JSON array of objects. "
            'Example structure: [{"title": "...", "authors": "...", "year": "...", "summary": "..."}]'
        )
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )
        response = await self._generate(prompt, config)
        items = parse_json(response.text, [], "grounded sources")
        if not isinstance(items, list):
            return []
        return attach_uris(items, grounding_uris(response))

    async def suggest_query(self, content_sample: str) -> str:
        """Derive a short source-search query from the text being written.

        Returns ``""`` when the model has nothing to suggest.
        """
        prompt = (
            "Read the following excerpt from a research manuscript and reply with a single "
            "short academic search query (at most 8 words) that would find sources supporting it. "
            "Reply with the query only, or with nothing if no query fits.\n\n"
            f"{content_sample}"
        )
        response = await self._generate(prompt)
        text = (response.text or "").strip()
        if not text:
            return ""
        return text.splitlines()[0].strip().strip('"')
