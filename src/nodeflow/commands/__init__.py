"""
nodeflow.commands - CLI command implementations
"""

from nodeflow.commands import check, reach, serve

__all__ = ["check", "reach", "serve"]
