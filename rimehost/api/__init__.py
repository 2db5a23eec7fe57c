"""Control API for the rime host."""

from .server import create_app, host_lifespan

__all__ = ["create_app", "host_lifespan"]
