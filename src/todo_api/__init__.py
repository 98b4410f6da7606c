"""Todo API: a per-user task list behind stateless bearer-token authentication."""

__version__ = "0.1.0"
