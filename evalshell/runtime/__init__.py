__all__ = [
    "Describe",
    "Entity",
    "Environment",
    "Evaluation",
    "Interpreter",
    "Node",
    "Package",
    "Problem",
    "Runtime",
    "Test",
    "load_runtime",
]

from .interfaces import Evaluation, Interpreter, Problem, Runtime
from .loader import load_runtime
from .model import Describe, Entity, Environment, Node, Package, Test
