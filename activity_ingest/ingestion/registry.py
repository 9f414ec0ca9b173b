"""
Source registry.

Maps source ids to adapter classes so the CLI and HTTP routes stay
source-agnostic.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from typing import Any, Dict, Type

from activity_ingest.ingestion.adapters.base_adapter import SourceAdapter

SOURCE_REGISTRY: Dict[str, Type[SourceAdapter]] = {}

_SOURCES_PACKAGE = "activity_ingest.ingestion.sources"


def register_source(source_id: str) -> Callable[[Type[SourceAdapter]], Type[SourceAdapter]]:
    """
    Decorator to register an adapter class.

    Usage:
        @register_source("badm")
        class BADMAdapter(SourceAdapter):
            ...
    """

    def decorator(cls: Type[SourceAdapter]) -> Type[SourceAdapter]:
        SOURCE_REGISTRY[source_id] = cls
        return cls

    return decorator


def _load_sources() -> None:
    importlib.import_module(_SOURCES_PACKAGE)


def available_sources() -> list[str]:
    _load_sources()
    return sorted(SOURCE_REGISTRY)


def create_adapter(source_id: str, **kwargs: Any) -> SourceAdapter:
    """
    Instantiate a registered adapter.

    Raises:
        KeyError: If no adapter is registered under ``source_id``
    """
    _load_sources()
    if source_id not in SOURCE_REGISTRY:
        raise KeyError(
            f"Unknown source '{source_id}'. Available: {', '.join(sorted(SOURCE_REGISTRY))}"
        )
    return SOURCE_REGISTRY[source_id](**kwargs)
