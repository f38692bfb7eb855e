"""Database module."""

from .database import Store
from .models import Base, Attempt

__all__ = ["Store", "Base", "Attempt"]
