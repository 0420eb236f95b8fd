from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DocumentSection(BaseModel):
    """One remote document. ``filename`` is the stable local key."""

    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    filename: str
    description: str

    @field_validator("title", "url", "filename", "description")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be a non-empty string")
        return v


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    slug: str
    description: str
    docs: list[DocumentSection]

    @field_validator("name", "slug", "description")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be a non-empty string")
        return v


class ResourceConfiguration(BaseModel):
    """The resolved catalog. Rebuilt on every load, never mutated in place."""

    model_config = ConfigDict(frozen=True)

    categories: list[Category]


class CategoryMappingEntry(BaseModel):
    """Single category in the bundled categories.json."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    slug: str
    description: str
    url_patterns: list[str] = Field(default_factory=list, alias="urlPatterns")


class CategoryMapping(BaseModel):
    version: str = ""
    categories: list[CategoryMappingEntry]
