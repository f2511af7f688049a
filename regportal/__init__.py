"""User registration and authentication service."""
