"""Domain Models: value objects and settings shared across layers."""
