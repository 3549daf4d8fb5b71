"""Registry API clients."""
