"""Infrastructure Layer — database, identity, and logging adapters.

Invariants:
    - Infrastructure never holds business rules; it maps IO failures to core/errors.py types

Design Decisions:
    - One module per external concern (database, identity, observability)
"""
