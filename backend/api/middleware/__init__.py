"""Request dependencies for authentication and rate limiting."""
