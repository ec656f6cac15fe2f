"""CLI command groups, each exposing register(app)."""
