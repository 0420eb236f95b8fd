from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from docmirror.models.catalog import Category
from docmirror.models.search import Heading, SearchResult

# ---------------------------------------------------------------------------
# get_doc
# ---------------------------------------------------------------------------


class GetDocInput(BaseModel):
    reference: str = Field(..., min_length=1, max_length=500)

    @field_validator("reference")
    @classmethod
    def validate_reference(cls, v: str) -> str:
        v = v.strip()
        if not v or v.startswith("#"):
            raise ValueError("reference must start with a document name, e.g. 'hooks#configuration'")
        return v


class GetDocOutput(BaseModel):
    slug: str
    filename: str
    anchor: str | None = None
    content: str
    section_count: int
    last_update: datetime | None = None
    reminder: str | None = None


# ---------------------------------------------------------------------------
# list_docs
# ---------------------------------------------------------------------------


class ListDocsOutput(BaseModel):
    total: int
    categories: list[Category]
    installed: list[str]
    missing: list[str]


class DocumentOutline(BaseModel):
    filename: str
    headings: list[Heading]


# ---------------------------------------------------------------------------
# search_docs
# ---------------------------------------------------------------------------


class SearchDocsInput(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)
    context_lines: int = Field(5, ge=0, le=50)
    max_results: int = Field(50, ge=1, le=1000)


class SearchDocsOutput(BaseModel):
    query: str
    total_matches: int
    results: list[SearchResult]


# ---------------------------------------------------------------------------
# cache_info, cache_clear, cache_warm
# ---------------------------------------------------------------------------


class CacheInfoOutput(BaseModel):
    cache_dir: str
    file_count: int
    total_bytes: int


class CacheClearOutput(BaseModel):
    cache_dir: str
    removed: int


class CacheWarmOutput(BaseModel):
    total: int
    warmed: int


# ---------------------------------------------------------------------------
# doctor
# ---------------------------------------------------------------------------


class HealthCheck(BaseModel):
    name: str
    status: Literal["pass", "warn", "fail"]
    message: str


class DoctorOutput(BaseModel):
    overall_status: Literal["healthy", "warnings", "failed"]
    checks: list[HealthCheck]
