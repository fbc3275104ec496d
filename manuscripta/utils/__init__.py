"""Utility functions."""

from manuscripta.utils.text import html_to_text, short_date, word_count

__all__ = ["html_to_text", "short_date", "word_count"]
