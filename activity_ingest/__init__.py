"""
Activity ingestion for the family activity discovery app.

Scrapes museum, park district, library and ticketing sources and upserts
normalized listings into the shared ``listings`` table.
"""

__version__ = "0.1.0"
