"""Rental access service: permission resolution and tiered rate limiting."""
