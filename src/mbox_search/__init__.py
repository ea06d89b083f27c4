"""mbox-search - local semantic search over an mbox archive.

This package parses a raw mbox file into byte-range records, decodes
messages on demand, embeds their bodies with a pool of model-holding
workers and answers free-text queries by cosine similarity.
"""

__version__ = "0.1.0"

from mbox_search.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
