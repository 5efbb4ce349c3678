"""A2A Desk: local control surface for LLM chat and A2A agent servers."""

__version__ = "0.1.0"
