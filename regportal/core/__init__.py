"""Core utilities: errors, logging, hashing, tokens."""
