from .base_adapter import (
    ExtractedFields,
    SourceAdapter,
    SourceConfig,
    SourceItem,
    SourceKind,
)

__all__ = [
    "ExtractedFields",
    "SourceAdapter",
    "SourceConfig",
    "SourceItem",
    "SourceKind",
]
