"""nodeflow - node-based workflow automation engine with trigger registry."""

__version__ = "0.1.0"
