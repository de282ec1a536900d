"""Post-extraction record processing."""
