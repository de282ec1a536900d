"""Pydantic data models for scraped game records."""
