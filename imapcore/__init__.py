"""IMAP4rev1 wire-syntax reader, response handlers and data models."""

__version__ = "0.1.0"