"""Domain Event definitions.

Represents significant occurrences (host selection, request retries and
outcomes) that other parts of the system might react to.
"""
