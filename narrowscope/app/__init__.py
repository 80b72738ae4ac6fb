"""Application layer for narrowscope.

This layer owns the stateful parts of an interaction (the running search and
the preview buffers). Process spawning and file access are delegated to
adapters via port interfaces.
"""
