"""External API integrations exposed as tools."""
