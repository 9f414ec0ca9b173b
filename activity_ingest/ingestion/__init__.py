"""
Ingestion layer.

Key components:
- SourceAdapter: per-site fetch and extraction behind one interface
- RecordNormalizer: extracted fields plus static config to a canonical Listing
- Reconciler: create-vs-update against the listings table
- RunDriver: sequential, rate-limited pass over one source's items
"""
