"""Services shared across the generation pipeline."""

from .progress import ProgressCallback, ProgressManager

__all__ = ["ProgressCallback", "ProgressManager"]
