"""Command-line interface for batchrelay."""
