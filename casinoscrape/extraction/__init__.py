"""HTML extraction: candidate discovery, field extraction, pipelines."""
