"""Top-level package for Django configuration.

Holds the settings modules for each environment and the WSGI/ASGI entry
points of the ParkHub admin dashboard.
"""
