from __future__ import annotations

from pydantic import BaseModel


class SearchResult(BaseModel):
    section: str
    filename: str
    line_number: int
    matched_line: str
    context: list[str]


class Heading(BaseModel):
    """A Markdown heading outside fenced code, with its 1-based line number."""

    line_number: int
    level: int
    title: str
    anchor: str
