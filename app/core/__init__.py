"""Core configuration and error types for the Company Search Aggregator."""
