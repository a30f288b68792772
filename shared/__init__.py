"""
Shared Kernel

Base classes and utilities shared across the domain apps: aggregates and
domain events, value objects, the Django unit of work and the message bus.
"""
