"""Authentication primitives: JWT engine and bearer token extraction."""
