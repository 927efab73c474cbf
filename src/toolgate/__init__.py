"""toolgate - human-in-the-loop tool call reconciliation for chat agents."""

__version__ = "0.1.0"
