__all__ = [
    "CommandRouter",
    "ContextBuilder",
    "ExecutionContext",
    "MetaCommand",
    "MultilineAccumulator",
    "ReplOptions",
    "SessionController",
    "SessionHistory",
]

from .commands import CommandRouter, MetaCommand
from .controller import ContextBuilder, ExecutionContext, ReplOptions, SessionController
from .history import SessionHistory
from .multiline import MultilineAccumulator
