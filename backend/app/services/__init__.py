"""Services Layer — imperative shell around the pure core.

Invariants:
    - Services own transactions: each public operation commits or rolls back as a unit
    - Business rules come from core/; services only sequence reads and guarded writes

Design Decisions:
    - One service per aggregate (sessions, accounts) plus the shared AccountLedger
"""
