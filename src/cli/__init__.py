"""Command line interface for stack reconciliation."""
