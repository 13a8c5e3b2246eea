"""Tools for maintaining buildpack, extension and builder configuration files."""

__version__ = "0.1.0"