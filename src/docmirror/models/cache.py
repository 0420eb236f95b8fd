from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CacheMetadata(BaseModel):
    """Header stored at the top of each cache file for validation."""

    model_config = ConfigDict(populate_by_name=True)

    version: str
    timestamp_ms: int = Field(alias="timestamp")
    source_file_path: str = Field(alias="sourceFile")
    source_url: str = Field(alias="sourceUrl")
    cache_path: str = Field(alias="cachePath")


class CacheStats(BaseModel):
    file_count: int = 0
    total_bytes: int = 0
