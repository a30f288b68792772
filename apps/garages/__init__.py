"""Garages app package.

Holds the garage record the rest of the marketplace hangs off. Creating a
garage seeds its operational status and weekly schedule so the status
engine always has rows to resolve.
"""
