"""Core peer-to-peer networking types: peer IDs, addresses, signed records and keys."""

__version__ = "0.1.0"