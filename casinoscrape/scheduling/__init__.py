"""Recurring scraping cycles: triggers, run records and the scheduler."""
