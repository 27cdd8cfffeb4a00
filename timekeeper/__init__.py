"""Campaign timeline engine - in-fiction calendar, active story arcs and events."""

__version__ = "0.1.0"
