"""Repository layer for MerchMagic.

Provides data access abstractions for the session's mockup set.
"""

from merchmagic.repositories.mockup import MockupRepository, StudioStats

__all__ = ["MockupRepository", "StudioStats"]
