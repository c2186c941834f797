"""Session-based authentication service built on Flask."""

from sessionauth.factory import create_app

__all__ = ["create_app"]
