"""Brand exposure analysis: platform detection, simulated metrics and media value."""

__version__ = "0.1.0"
