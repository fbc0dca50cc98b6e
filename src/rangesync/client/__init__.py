"""Client module - HTTP access, delta sync engine and CLI."""
