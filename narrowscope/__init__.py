"""narrowscope - Live narrowing search over cscope cross-reference databases.

Turns incrementally typed input into cscope queries, streams the results as
structured candidates, and resolves them to preview and jump locations.
"""

__version__ = "0.1.0"
__author__ = "narrowscope Contributors"

from narrowscope.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
