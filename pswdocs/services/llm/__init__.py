"""Ollama proxy endpoints."""
