"""Command line interface for forksh."""

from .app import app
from .render import Renderer

__all__ = ["Renderer", "app"]
