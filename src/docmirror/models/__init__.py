from __future__ import annotations

from docmirror.models.cache import CacheMetadata, CacheStats
from docmirror.models.catalog import (
    Category,
    CategoryMapping,
    CategoryMappingEntry,
    DocumentSection,
    ResourceConfiguration,
)
from docmirror.models.search import Heading, SearchResult
from docmirror.models.tools import (
    CacheClearOutput,
    CacheInfoOutput,
    CacheWarmOutput,
    DoctorOutput,
    DocumentOutline,
    GetDocInput,
    GetDocOutput,
    HealthCheck,
    ListDocsOutput,
    SearchDocsInput,
    SearchDocsOutput,
)
from docmirror.models.update import (
    ChangelogEntry,
    CheckResult,
    Classification,
    CommitResult,
    DiffResult,
    DiscardResult,
    DownloadResult,
    SyncResult,
    UpdateStatus,
)

__all__ = [
    # catalog
    "DocumentSection",
    "Category",
    "ResourceConfiguration",
    "CategoryMapping",
    "CategoryMappingEntry",
    # cache
    "CacheMetadata",
    "CacheStats",
    # update workflow
    "Classification",
    "DiffResult",
    "DownloadResult",
    "CheckResult",
    "CommitResult",
    "DiscardResult",
    "SyncResult",
    "ChangelogEntry",
    "UpdateStatus",
    # search
    "SearchResult",
    "Heading",
    # tools
    "GetDocInput",
    "GetDocOutput",
    "ListDocsOutput",
    "DocumentOutline",
    "SearchDocsInput",
    "SearchDocsOutput",
    "CacheInfoOutput",
    "CacheClearOutput",
    "CacheWarmOutput",
    "HealthCheck",
    "DoctorOutput",
]
