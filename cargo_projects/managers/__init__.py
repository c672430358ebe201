"""Data access managers for the project and watcher registries.

Each manager owns one document store and wraps every mutation in a
load -> mutate -> save cycle.  Managers raise domain exceptions
(``ProjectNotFoundError``, ``WatcherNotFoundError``), never CLI errors --
that translation is the command layer's responsibility.
"""
