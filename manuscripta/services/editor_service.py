"""Editor surface: one bound section, rich-text commands, caret insertion.

The surface never touches a browser. Formatting goes through an
:class:`EditingBackend`; :class:`HtmlFragmentBackend` implements it over
an HTML string with the caret and selection held as character offsets,
which is what the web client reports on every input event.
"""

import logging
import re
from enum import Enum
from typing import Optional, Protocol

from manuscripta.exceptions import ValidationError
from manuscripta.models.sections import SectionStore

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER = "Start writing this section..."

ALIGNMENTS = ("left", "center", "right", "justify")

# query_state attribute → tag names that carry it
_STATE_TAGS: dict[str, tuple[str, ...]] = {
    "bold": ("b", "strong"),
    "italic": ("i", "em"),
    "underline": ("u",),
    "ordered_list": ("ol",),
    "unordered_list": ("ul",),
}


class EditingBackend(Protocol):
    """Capability interface for a rich-text editing backend."""

    html: str
    focused: bool
    selection_start: int
    selection_end: int

    def load(self, html: str) -> None: ...
    def set_selection(self, start: int, end: Optional[int] = None) -> None: ...
    def bold(self) -> None: ...
    def italic(self) -> None: ...
    def underline(self) -> None: ...
    def align(self, direction: str) -> None: ...
    def ordered_list(self) -> None: ...
    def unordered_list(self) -> None: ...
    def insert_table(self, rows: int = 3, cols: int = 3) -> None: ...
    def page_break(self) -> None: ...
    def insert_html(self, fragment: str) -> None: ...
    def query_state(self, attr: str) -> bool: ...


class HtmlFragmentBackend:
    """Editing backend over an HTML string.

    Offsets index into ``html``. Offsets that fall inside a tag are moved
    past the tag's closing ``>``.
    """

    PAGE_BREAK_HTML = '<div class="page-break" contenteditable="false"></div>'

    def __init__(self, html: str = ""):
        self.html = html
        self.focused = False
        self.selection_start = len(html)
        self.selection_end = len(html)

    @property
    def caret(self) -> int:
        return self.selection_end

    @property
    def collapsed(self) -> bool:
        return self.selection_start == self.selection_end

    def load(self, html: str) -> None:
        self.html = html
        self.selection_start = self.selection_end = len(html)

    def _snap(self, offset: int) -> int:
        offset = max(0, min(offset, len(self.html)))
        last_open = self.html.rfind("<", 0, offset)
        last_close = self.html.rfind(">", 0, offset)
        if last_open > last_close:
            end = self.html.find(">", offset)
            return len(self.html) if end == -1 else end + 1
        return offset

    def set_selection(self, start: int, end: Optional[int] = None) -> None:
        start = self._snap(start)
        end = start if end is None else self._snap(end)
        self.selection_start, self.selection_end = min(start, end), max(start, end)

    def _splice(self, fragment: str, caret_in_fragment: Optional[int] = None) -> None:
        """Replace the selection with *fragment* and place the caret."""
        start = self.selection_start
        self.html = self.html[:start] + fragment + self.html[self.selection_end:]
        offset = len(fragment) if caret_in_fragment is None else caret_in_fragment
        self.selection_start = self.selection_end = start + offset

    def _wrap(self, open_tag: str, close_tag: str) -> None:
        if self.collapsed:
            self._splice(open_tag + close_tag, caret_in_fragment=len(open_tag))
            return
        start = self.selection_start
        selected = self.html[start:self.selection_end]
        wrapped = f"{open_tag}{selected}{close_tag}"
        self._splice(wrapped)
        self.selection_start = start

    def bold(self) -> None:
        self._wrap("<b>", "</b>")

    def italic(self) -> None:
        self._wrap("<i>", "</i>")

    def underline(self) -> None:
        self._wrap("<u>", "</u>")

    def align(self, direction: str) -> None:
        if direction not in ALIGNMENTS:
            raise ValidationError(f"Unknown alignment: {direction}", field="direction")
        self._wrap(f'<div style="text-align: {direction}">', "</div>")

    def ordered_list(self) -> None:
        self._wrap("<ol><li>", "</li></ol>")

    def unordered_list(self) -> None:
        self._wrap("<ul><li>", "</li></ul>")

    def insert_table(self, rows: int = 3, cols: int = 3) -> None:
        rows, cols = max(1, rows), max(1, cols)
        row = "<tr>" + "<td>&nbsp;</td>" * cols + "</tr>"
        self.insert_html(f'<table class="manuscript-table"><tbody>{row * rows}</tbody></table><p></p>')

    def page_break(self) -> None:
        self.insert_html(self.PAGE_BREAK_HTML)

    def insert_html(self, fragment: str) -> None:
        """Insert *fragment* at the caret (replacing any selection).

        Focus is left as it was.
        """
        self._splice(fragment)

    def query_state(self, attr: str) -> bool:
        """True if the caret sits inside an element carrying *attr*."""
        tags = _STATE_TAGS.get(attr)
        if not tags:
            return False
        before = self.html[:self.caret]
        for tag in tags:
            opened = len(re.findall(rf"<{tag}(?:\s[^>]*)?>", before, re.IGNORECASE))
            closed = len(re.findall(rf"</{tag}\s*>", before, re.IGNORECASE))
            if opened > closed:
                return True
        return False


class EditorState(str, Enum):
    IDLE = "idle"
    DIRTY = "dirty"


class EditorSurface:
    """State machine over the one section currently bound to the surface.

    ``IDLE(section)`` → input → ``DIRTY`` → blur / section switch →
    flush → ``IDLE(new section)``. Input events write straight through to
    the store; the flush on blur or switch only writes if the surface
    diverged from the last write for the bound section.
    """

    COMMANDS = (
        "bold",
        "italic",
        "underline",
        "align",
        "ordered_list",
        "unordered_list",
        "insert_table",
        "page_break",
    )

    def __init__(
        self,
        store: SectionStore,
        backend: Optional[EditingBackend] = None,
        placeholder: str = DEFAULT_PLACEHOLDER,
    ):
        self.store = store
        self.backend: EditingBackend = backend or HtmlFragmentBackend()
        self.placeholder = placeholder
        self.state = EditorState.IDLE
        self.bound_section: Optional[str] = None
        self._flushed = ""

    @property
    def html(self) -> str:
        return self.backend.html

    @property
    def placeholder_html(self) -> str:
        return f'<p class="placeholder">{self.placeholder}</p>'

    @property
    def display_html(self) -> str:
        """HTML to render: the placeholder only while the section is empty."""
        if self.bound_section is None or not self.store.get(self.bound_section):
            return self.placeholder_html
        return self.backend.html

    def require_bound(self) -> str:
        if self.bound_section is None:
            raise ValidationError("No section is open in the editor.", field="section")
        return self.bound_section

    def bind(self, section: str) -> None:
        """Switch the surface to *section*, loading its stored HTML verbatim."""
        if section == self.bound_section:
            return
        if self.bound_section is not None:
            self.blur()
        html = self.store.get(section)
        self.backend.load(html)
        self.bound_section = section
        self._flushed = html
        self.state = EditorState.IDLE
        logger.debug("Editor bound to section %r", section)

    def release(self) -> None:
        """Unbind without flushing (the bound section was removed)."""
        self.backend.load("")
        self.backend.focused = False
        self.bound_section = None
        self._flushed = ""
        self.state = EditorState.IDLE

    def focus(self) -> None:
        self.backend.focused = True

    def _strip_placeholder(self, html: str) -> str:
        stripped = html.strip()
        if stripped in (self.placeholder_html, self.placeholder):
            return ""
        return html

    def on_input(
        self,
        html: str,
        selection_start: Optional[int] = None,
        selection_end: Optional[int] = None,
    ) -> None:
        """Apply an input event: new surface HTML plus the caret/selection."""
        section = self.require_bound()
        html = self._strip_placeholder(html)
        self.backend.load(html)
        if selection_start is not None:
            self.backend.set_selection(selection_start, selection_end)
        self.backend.focused = True
        self.store.set(section, html)
        self._flushed = html
        self.state = EditorState.DIRTY

    def set_selection(self, start: int, end: Optional[int] = None) -> None:
        self.backend.set_selection(start, end)

    def flush(self) -> bool:
        """Write the surface to the store if it diverged from the last write."""
        if self.bound_section is None or self.backend.html == self._flushed:
            return False
        self.store.set(self.bound_section, self.backend.html)
        self._flushed = self.backend.html
        return True

    def blur(self) -> None:
        self.flush()
        self.backend.focused = False
        self.state = EditorState.IDLE

    def _sync(self) -> None:
        section = self.require_bound()
        self.store.set(section, self.backend.html)
        self._flushed = self.backend.html

    def apply(self, command: str, **kwargs) -> str:
        """Run a formatting command and push the result into the store.

        Returns:
            The surface HTML after the command
        """
        self.require_bound()
        if command not in self.COMMANDS:
            raise ValidationError(f"Unknown editor command: {command}", field="command")
        getattr(self.backend, command)(**kwargs)
        self._sync()
        return self.backend.html

    def insert_html(self, fragment: str) -> None:
        """Insert *fragment* at the caret without changing focus."""
        self.require_bound()
        self.backend.insert_html(fragment)
        self._sync()

    def query_state(self, attr: str) -> bool:
        return self.backend.query_state(attr)

    def refresh_from_store(self) -> None:
        """Reload the bound section after it was changed outside the surface."""
        if self.bound_section is None:
            return
        caret = self.backend.selection_end
        html = self.store.get(self.bound_section)
        self.backend.load(html)
        self.backend.set_selection(caret)
        self._flushed = html
