"""Infrastructure: upstream client, cache store, rate limiting, observability."""
