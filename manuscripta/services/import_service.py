"""Manuscript import: store the upload, extract text, split into sections."""

import io
import logging
import time
import uuid
import zipfile
from pathlib import Path
from typing import Awaitable, Callable

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from manuscripta.exceptions import ManuscriptImportError
from manuscripta.models.project import CitationStyle, Methodology, Project, new_project_id
from manuscripta.utils.text import html_to_text, slugify, text_to_html

logger = logging.getLogger(__name__)

TRUNCATE_LIMIT = 50000
TEXT_SUFFIXES = {".txt", ".md", ".markdown"}
HTML_SUFFIXES = {".html", ".htm"}
SUPPORTED_SUFFIXES = TEXT_SUFFIXES | HTML_SUFFIXES | {".docx", ".pdf"}

ExtractFn = Callable[[str], Awaitable[dict[str, str]]]


def docx_text(data: bytes) -> str:
    """Paragraph text of a .docx file, blank paragraphs dropped."""
    document = Document(io.BytesIO(data))
    paragraphs = [p.text for p in document.paragraphs if p.text.strip()]
    return "\n\n".join(paragraphs)


def extract_text(filename: str, data: bytes) -> str:
    """Plain text of an uploaded manuscript, truncated to ``TRUNCATE_LIMIT``.

    Raises:
        ManuscriptImportError: Unsupported type or unreadable content
    """
    suffix = Path(filename).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ManuscriptImportError(f"Unsupported file type: {suffix or 'none'}")
    try:
        if suffix == ".docx":
            text = docx_text(data)
        elif suffix == ".pdf":
            text = (
                f"PDF Document: {filename}\n\n"
                "Note: PDF text extraction is not available. "
                "The document has been stored and can be opened for reference."
            )
        elif suffix in HTML_SUFFIXES:
            text = html_to_text(data.decode("utf-8", errors="replace"))
        else:
            text = data.decode("utf-8", errors="replace")
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise ManuscriptImportError("Could not read the uploaded document.", str(e)) from e

    if len(text) > TRUNCATE_LIMIT:
        text = text[:TRUNCATE_LIMIT] + "... [Truncated]"
    return text


def store_upload(upload_dir: Path, owner: str, filename: str, data: bytes) -> Path:
    """Save the uploaded bytes under ``<upload_dir>/<owner-slug>/`` and return the path."""
    suffix = Path(filename).suffix.lower()
    target_dir = upload_dir / (slugify(owner) if owner.strip() else "local")
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}{suffix}"
    target.write_bytes(data)
    return target


class ManuscriptImporter:
    """Turns an uploaded manuscript into a Draft project."""

    def __init__(self, extract_sections: ExtractFn, upload_dir: Path, owner: str = ""):
        """Initialize importer.

        Args:
            extract_sections: Section extraction service call
            upload_dir: Directory for stored uploads
            owner: Name recorded on imported projects
        """
        self._extract_sections = extract_sections
        self.upload_dir = upload_dir
        self.owner = owner

    async def import_file(self, filename: str, data: bytes) -> Project:
        """Import *filename* and return the new (unsaved) project.

        Raises:
            ManuscriptImportError: On any read, storage or extraction failure
        """
        if not data:
            raise ManuscriptImportError("The uploaded file is empty.")
        text = extract_text(filename, data)
        try:
            stored = store_upload(self.upload_dir, self.owner, filename, data)
        except OSError as e:
            raise ManuscriptImportError("Failed to store the uploaded file.", str(e)) from e

        try:
            sections = await self._extract_sections(text or "Sample manuscript content...")
        except Exception as e:
            logger.exception("Manuscript ingestion failed for %s", filename)
            raise ManuscriptImportError("Failed to analyse the manuscript.", str(e)) from e

        logger.info("Imported %s into %d sections", filename, len(sections))
        return Project(
            id=new_project_id(),
            title=Path(filename).stem,
            theme="Uploaded manuscript",
            citation_style=CitationStyle.APA,
            methodology=Methodology.QUALITATIVE,
            sections={name: text_to_html(content) for name, content in sections.items()},
            owner=self.owner,
            source_file=str(stored),
        )
