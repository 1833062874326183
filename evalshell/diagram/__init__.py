__all__ = ["DiagramBridge", "DiagramServer", "diagram_server_factory"]

from .bridge import DiagramBridge
from .server import DiagramServer, diagram_server_factory
