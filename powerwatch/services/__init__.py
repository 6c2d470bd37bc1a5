"""Domain services: ingestion, integration, billing and analytics."""
