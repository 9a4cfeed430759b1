"""Pydantic request/response models and domain records."""
