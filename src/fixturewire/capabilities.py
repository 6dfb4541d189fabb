"""Capability names shared by the collection setup and its consumers."""

CONFIGURATION = "configuration"
"""The immutable configuration snapshot loaded for a collection."""

DATABASE_RESOURCE = "database resource"
"""The shared stand-in database."""
