"""Key-value persistence service keyed by (account, project)."""

__version__ = "0.1.0"
