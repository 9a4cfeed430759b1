"""Transaction risk scoring: heuristics, LLM analysis, similarity."""
