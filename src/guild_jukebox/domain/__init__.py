# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Exceptions, constrained types, and message constants
- music/: Track, queue, history, and the per-guild player session
- voting/: Skip votes and their threshold policy
- guild/: Persisted per-guild configuration and user favorites
"""

from guild_jukebox.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
