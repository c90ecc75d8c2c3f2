"""Users module - people assigned to hierarchy nodes."""

from orgtree.modules.users.routes import router


# Module metadata
__module_info__ = {
    "name": "users",
    "version": "1.0.0",
    "description": "Occupants of hierarchy nodes",
    "dependencies": ["nodes"],
}

__all__ = ["router"]
