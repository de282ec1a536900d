"""Settings, game configuration schema and loader."""
