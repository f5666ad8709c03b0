"""Context distillation for LLM prompts: caching, prefix stability, clustering and deduplication."""

__version__ = "0.1.0"