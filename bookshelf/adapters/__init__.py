"""Adapter package for external I/O implementations.

Purpose:
    Collect concrete implementations for domain ports (HTTP, filesystem, and
    the in-memory store used offline and in tests).

Dependencies:
    Individual submodules depend on ``httpx``, filesystem APIs, and domain
    protocol definitions.

Call context:
    Imported by ``bookshelf/app/main.py`` for runtime wiring and by tests.
"""
