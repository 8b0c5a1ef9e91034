"""Document ingestion, study material generation and quiz progress."""
