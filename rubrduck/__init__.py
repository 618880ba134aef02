"""Building blocks of an AI coding agent: tools, risk analysis and operation approval."""

__version__ = "0.1.0"