"""emailqa: static quality analysis for rendered HTML email templates."""

__version__ = "0.3.0"
