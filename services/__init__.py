"""Service layer orchestrating authentication and profile operations."""
