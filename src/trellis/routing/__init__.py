"""Routing — file-path-shaped patterns compiled into a route tree.

Patterns are parsed and the tree is built once at startup; resolution
is read-only and safe to share across concurrent renders.
"""
