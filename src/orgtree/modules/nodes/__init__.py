"""Nodes module - the tenant organizational hierarchy."""

from orgtree.modules.nodes.routes import router


# Module metadata
__module_info__ = {
    "name": "nodes",
    "version": "1.0.0",
    "description": "Tenant organizational hierarchy",
    "dependencies": [],
}

__all__ = ["router"]
