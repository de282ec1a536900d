"""Persistence adapters for scraped records."""
