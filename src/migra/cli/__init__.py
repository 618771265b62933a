"""Command line interface for migra."""
