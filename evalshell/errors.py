from __future__ import annotations


class EvalShellError(RuntimeError):
    pass


class ConfigError(EvalShellError):
    """Invalid or contradictory settings; the requested run never starts."""


class BuildError(EvalShellError):
    """The program environment could not be built or failed validation."""


__all__ = ["BuildError", "ConfigError", "EvalShellError"]
