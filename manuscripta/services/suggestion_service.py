"""Debounced suggestion pipelines (topic titles, context-derived queries).

A :class:`Debouncer` owns one logical trigger. Each ``schedule()``
cancels the pending timer and bumps a generation counter. Calls already
in flight are left to finish; only a completion whose generation is
still the latest is applied.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from manuscripta.utils.text import html_to_text

if TYPE_CHECKING:
    from manuscripta.services.source_panel import SourcePanel

logger = logging.getLogger(__name__)

TOPIC_DEBOUNCE_SECONDS = 0.8
CONTEXT_DEBOUNCE_SECONDS = 5.0
MIN_THEME_LENGTH = 3
MIN_CONTEXT_LENGTH = 100
CONTEXT_SAMPLE_LENGTH = 1000


class Debouncer:
    """Single-shot, reschedulable delayed call with a stale-result guard."""

    def __init__(self, delay: float, name: str = "debounce"):
        self.delay = delay
        self.name = name
        self.generation = 0
        self._timer: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        """True while a timer is waiting or a call has not completed."""
        timer_waiting = self._timer is not None and not self._timer.done()
        return timer_waiting or bool(self._inflight)

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def schedule(
        self,
        func: Callable[..., Awaitable[Any]],
        *args: Any,
        on_result: Callable[[Any], None],
    ) -> int:
        """(Re)start the timer; after ``delay`` run ``func(*args)``.

        Must be called from inside a running event loop.

        Returns:
            The generation number of this trigger
        """
        self.cancel()
        self.generation += 1
        generation = self.generation
        loop = asyncio.get_running_loop()
        self._timer = loop.create_task(self._fire(generation, func, args, on_result))
        return generation

    def cancel(self) -> None:
        """Cancel the pending timer; calls already in flight keep running."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def invalidate(self) -> None:
        """Cancel the pending timer and mark every earlier trigger stale."""
        self.cancel()
        self.generation += 1

    async def _fire(self, generation, func, args, on_result) -> None:
        await asyncio.sleep(self.delay)
        task = asyncio.get_running_loop().create_task(
            self._call(generation, func, args, on_result)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _call(self, generation, func, args, on_result) -> None:
        try:
            result = await func(*args)
        except Exception:
            logger.exception("%s call failed (generation %d)", self.name, generation)
            return
        if not self.is_current(generation):
            logger.debug(
                "%s: dropping stale result (generation %d, latest %d)",
                self.name, generation, self.generation,
            )
            return
        on_result(result)

    async def drain(self) -> None:
        """Wait for the pending timer and any in-flight calls to finish."""
        if self._timer is not None:
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)


class TopicSuggester:
    """Title suggestions for the theme typed in the topic architect."""

    def __init__(
        self,
        suggest: Callable[[str], Awaitable[list[str]]],
        delay: float = TOPIC_DEBOUNCE_SECONDS,
        min_length: int = MIN_THEME_LENGTH,
    ):
        self._suggest = suggest
        self.min_length = min_length
        self.debouncer = Debouncer(delay, name="topic-suggest")
        self.theme = ""
        self.topics: list[str] = []

    @property
    def loading(self) -> bool:
        return self.debouncer.pending

    def update_theme(self, theme: str) -> None:
        """Record the typed theme and (re)schedule a suggestion call."""
        self.theme = theme
        if len(theme.strip()) > self.min_length:
            self.debouncer.schedule(self._suggest, theme, on_result=self._apply)
        else:
            self.debouncer.invalidate()
            self.topics = []

    def _apply(self, topics: list[str]) -> None:
        self.topics = list(topics)[:5]


class ContextSuggester:
    """Derives a search query from the text being written.

    Advisory only: a derived query is offered through
    ``panel.suggested_query`` and never replaces the search box text.
    """

    def __init__(
        self,
        suggest_query: Callable[[str], Awaitable[str]],
        panel: "SourcePanel",
        delay: float = CONTEXT_DEBOUNCE_SECONDS,
        min_length: int = MIN_CONTEXT_LENGTH,
        sample_length: int = CONTEXT_SAMPLE_LENGTH,
    ):
        self._suggest_query = suggest_query
        self.panel = panel
        self.min_length = min_length
        self.sample_length = sample_length
        self.debouncer = Debouncer(delay, name="context-suggest")

    def on_keystroke(self, html: str) -> bool:
        """Called on every input event.

        Returns:
            True if a suggestion call was scheduled
        """
        text = html_to_text(html).strip()
        if len(text) <= self.min_length:
            self.debouncer.invalidate()
            return False
        sample = text[-self.sample_length:]
        self.debouncer.schedule(self._suggest_query, sample, on_result=self._apply)
        return True

    def _apply(self, query: str) -> None:
        query = (query or "").strip()
        if query and query != self.panel.query_text.strip():
            self.panel.suggested_query = query
