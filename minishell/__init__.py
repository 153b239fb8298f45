"""A small command shell with pipes, redirections, expansion and built-ins."""

__version__ = "0.1.0"