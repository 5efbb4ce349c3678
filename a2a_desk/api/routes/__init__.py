"""FastAPI route modules.

Exports all route modules for inclusion in the main application.
"""

from a2a_desk.api.routes import a2a, agents, chat, models

__all__ = [
    "a2a",
    "agents",
    "chat",
    "models",
]
