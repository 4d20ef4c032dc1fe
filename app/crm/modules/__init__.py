"""
Feature modules live under this package.

Each module owns its service functions and its blueprint, and reuses the core
primitives (session, access policy, record store, audit, clock, blob storage).
"""
