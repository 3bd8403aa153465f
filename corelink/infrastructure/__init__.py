"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (DNS, HTTP, disk storage,
the console) by implementing the interfaces defined in the domain layer.
"""
