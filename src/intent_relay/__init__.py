"""Intent Relay - intent-routed structured generation over newline-delimited JSON."""

__version__ = "0.1.0"
