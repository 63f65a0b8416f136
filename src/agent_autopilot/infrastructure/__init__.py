"""Infrastructure adapters — database, Redis, marketplace and chain clients."""
