"""Symbol graph model, edge resolution, route detection, process tracing, SQLite schema and storage interface."""

__version__ = "0.3.0"