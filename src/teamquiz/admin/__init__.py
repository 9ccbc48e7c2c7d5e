"""Admin endpoints and client cache settings."""
