"""HTTP trigger surface."""

from .server import create_app, require_bearer

__all__ = ["create_app", "require_bearer"]
