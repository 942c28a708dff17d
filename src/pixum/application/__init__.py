"""Application layer: retrieval orchestration, URL inference and caching."""
