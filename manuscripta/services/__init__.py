"""Service layer."""

from manuscripta.services.citation_service import (
    format_bibliography,
    format_citation,
    format_in_text_citation,
)
from manuscripta.services.editor_service import EditorSurface, HtmlFragmentBackend
from manuscripta.services.export_service import MarkdownExporter
from manuscripta.services.import_service import ManuscriptImporter
from manuscripta.services.pagination_service import PageStats, page_stats
from manuscripta.services.source_panel import CiteResult, SourcePanel
from manuscripta.services.suggestion_service import ContextSuggester, Debouncer, TopicSuggester

__all__ = [
    "CiteResult",
    "ContextSuggester",
    "Debouncer",
    "EditorSurface",
    "HtmlFragmentBackend",
    "ManuscriptImporter",
    "MarkdownExporter",
    "PageStats",
    "SourcePanel",
    "TopicSuggester",
    "format_bibliography",
    "format_citation",
    "format_in_text_citation",
    "page_stats",
]
