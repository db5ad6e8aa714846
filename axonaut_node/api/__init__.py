"""API route modules."""
from axonaut_node.api import axonaut

__all__ = ["axonaut"]
