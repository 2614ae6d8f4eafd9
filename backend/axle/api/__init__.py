"""API Layer — FastAPI routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Routes are thin: they delegate to services and let AxleError propagate
"""
