"""Browser engines used by scrapers."""
