"""FastAPI routers acting as controllers in the MVC architecture."""

from . import waveform

__all__ = ["waveform"]
