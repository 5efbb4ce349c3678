"""Local HTTP API for A2A Desk."""
