"""Configuration, password helpers, SPA serving, session authentication and schema updates for a CTF platform server."""

__version__ = "0.1.0"