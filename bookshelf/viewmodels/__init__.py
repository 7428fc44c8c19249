"""ViewModel package for UI state and command surfaces.

Call context:
    ``bookshelf/app/main.py`` wires concrete viewmodels from this package and
    a presentation layer binds its callbacks to their state transitions.

Dependencies:
    Modules in this package depend on domain types and the repository client.
    HTTP adapters and persistence remain outside.

Responsibilities:
    - Expose mutable UI state and command intent methods.
    - Project domain objects into view-facing DTOs.
    - Own the transient notification set shown to the user.
"""
