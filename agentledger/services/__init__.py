"""Application services: pipeline, analytics, search, LLM gateway, cache."""
