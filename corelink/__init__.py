"""corelink: resilient client binding between a node and its Core services."""

__version__ = "1.0.0"
