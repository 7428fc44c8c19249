"""Use-case layer for orchestrating catalog workflows.

Modules here coordinate domain objects and ports without performing transport
I/O directly, preserving MVVM + Hexagonal boundaries.
"""
