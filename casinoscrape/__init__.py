"""
casinoscrape: live casino game scraping and scheduling.

Key Components:
- GameScraper: browser-driven scraper with persist-or-fallback semantics
- ExtractionPipeline: heuristic HTML extraction of game records
- ScraperRegistry: game key to scraper constructor lookup
- TaskScheduler: cron-driven, single-flight scraping cycles
"""

__version__ = "0.3.0"
