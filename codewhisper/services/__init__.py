"""Service layer: indexing, retrieval, the agentic responder and session state."""
