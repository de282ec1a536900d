"""Game scrapers and the scraper registry."""
