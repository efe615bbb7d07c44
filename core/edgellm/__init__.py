"""edgellm - picks and runs the best on-device LLM backend for a device."""

__version__ = "0.1.0"
