"""Learning Tracker: browser-history driven learning progress service.

This package turns raw browsing history into a curated learning log:
- Content classification (is this page learning material?)
- Confidence scoring of classified entries
- Cross-referencing approved entries against a curriculum roadmap
- Recency-weighted progress per roadmap topic
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
