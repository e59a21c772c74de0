"""Routing — path templates, route composition and the dispatch table.

Endpoints are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""
