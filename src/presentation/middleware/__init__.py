"""
Middleware layer for Gatekeeper.

Request-scoped concerns that wrap every route: scanner context and
correlation ids.
"""
