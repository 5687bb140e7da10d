"""Utility functions for the carbon kernel."""

from carbon_kernel.utils.hashing import canonicalize_json, hash_payload

__all__ = [
    "canonicalize_json",
    "hash_payload",
]
