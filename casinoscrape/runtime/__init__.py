"""Shared runtime primitives: errors, retry policy, block detection."""
