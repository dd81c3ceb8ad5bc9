__all__ = [
    "models",
    "schemas",
    "prompts",
    "llm_provider",
    "logging",
]
