"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions raise core/errors.py types or return plain descriptors

Design Decisions:
    - Functional core separated from imperative shell: services/ turn core
      decisions into guarded SQL
"""
