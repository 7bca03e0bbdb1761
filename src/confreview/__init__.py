"""Conference abstract review: reviewer assignment, review intake, consensus and decision emails."""

__version__ = "0.1.0"
