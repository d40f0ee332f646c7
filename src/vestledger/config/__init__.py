"""Distribution configuration."""
