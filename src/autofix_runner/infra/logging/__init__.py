"""Structured run logging: JSON lines on disk, readable lines on the console."""

from .logger import BoundLogger, RunLogger

__all__ = ["BoundLogger", "RunLogger"]
