"""Connectors - integrations with external systems.

Each connector converts its system's payloads into the canonical records
of core.models at the boundary; nothing source-specific leaks past it.
"""
