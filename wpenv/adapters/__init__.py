"""Adapters — bindings to external tools (credential stores)."""
