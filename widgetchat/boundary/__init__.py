"""
Boundary layer for external system integrations.

Handles all interactions with external systems (database, token verification).
Provides adapters for infrastructure dependencies.
"""
