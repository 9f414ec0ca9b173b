"""Post-ingestion passes over the listings table."""
