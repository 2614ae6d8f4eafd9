"""Services Layer — task store, dispatcher, handlers, scheduler loop, ledger.

Invariants:
    - Services take an AsyncSession; they commit their own writes
    - Kind -> handler mapping is an explicit dict (no auto-discovery)
"""
