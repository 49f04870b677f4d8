"""Deep research: streaming multi-round web research with a synthesized report."""

__version__ = "0.1.0"
