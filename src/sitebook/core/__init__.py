"""Core generation API for sitebook."""

from .generator import Generator, OutputFormat, SitePreview

__all__ = ["Generator", "OutputFormat", "SitePreview"]
