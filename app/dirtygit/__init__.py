"""dirtygit - find git repositories in need of commitment."""

__version__ = "0.1.0"
