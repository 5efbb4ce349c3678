"""A2A Desk command-line interface."""
