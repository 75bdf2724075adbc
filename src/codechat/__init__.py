# Purpose: Expose package-level metadata for the coding assistant chat client.
# Why: Packaging tools rely on this module for version introspection.
"""Coding assistant chat CLI package initializer providing package metadata."""

__all__ = ["__version__"]
__version__ = "0.1.0"
