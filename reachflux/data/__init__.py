"""Input table handling."""
