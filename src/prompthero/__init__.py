"""Prompt Hero - a searchable catalog of AI prompts."""

__version__ = "0.1.0"
