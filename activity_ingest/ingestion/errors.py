"""Exception hierarchy for the ingestion pipeline."""


class IngestError(Exception):
    """Base class for ingestion failures."""


class FetchError(IngestError):
    """A page, feed or rendered document could not be retrieved."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class ExtractionError(IngestError):
    """An extraction step that must abort the whole item."""


class StorageError(IngestError):
    """The listings store rejected a read or write."""
