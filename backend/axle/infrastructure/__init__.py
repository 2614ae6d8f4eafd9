"""Infrastructure Layer — database engine, reasoning client, logging setup.

Invariants:
    - All external failures mapped to AxleError subclasses before leaving this layer
"""
