"""Request, response and validation helpers."""
