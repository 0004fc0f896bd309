"""Command-line interface for eqmind."""
