"""
Infrastructure layer package for ShelfKeeper.
Provides the async database engine and session management.
"""

__all__ = []
