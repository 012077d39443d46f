"""Customer conversation helper: reply suggestions grounded in past emails."""

__version__ = "0.1.0"
