"""Release models, version extraction, ordering and resolvers."""
