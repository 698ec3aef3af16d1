"""PromptPal scoring and hint-economy core."""

__version__ = "0.1.0"
