"""Axle Agent Core — autonomous, budget-gated task scheduler.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
