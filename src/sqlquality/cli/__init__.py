"""Command line interface for sqlquality."""
