"""Shared building blocks: DAR pipeline, AI service clients, errors, logging, health."""
