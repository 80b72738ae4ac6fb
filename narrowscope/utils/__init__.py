"""Utility modules for narrowscope."""
