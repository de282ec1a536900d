"""Logging, structured events and in-process metrics."""
