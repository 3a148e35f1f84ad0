"""fspec - Feature specifications from existing code.

fspec reads JavaScript sources and their tests, extracts callable symbols,
doc comments and test-derived behavior, and writes or enriches Markdown
feature specifications without touching human-authored content.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
