"""HTTP API: chainhook ingestion endpoint and read API."""
