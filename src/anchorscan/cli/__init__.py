"""anchorscan CLI."""
