"""
Syndication

A multi-user RSS/Atom aggregation service.
Provides feed synchronization, token authentication, per-user categories,
tags and entry markers, and a local admin channel.
"""

__version__ = "1.0.0"
