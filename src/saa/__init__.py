"""Security profile determination and control recommendation for SA&A intake."""

__version__ = "1.0.0"
