"""Concrete providers: DuckDB-backed stores and chat-completion clients."""
