"""veoqueue: batch video and image generation against long-running provider APIs."""

__version__ = "0.1.0"
