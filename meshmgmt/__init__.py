"""Domain objects and in-process controllers for managing a mesh overlay network."""

__version__ = "0.1.0"