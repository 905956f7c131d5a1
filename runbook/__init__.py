"""Parse TOML runbooks into command, pipeline, worker and agent definitions."""

__version__ = "0.1.0"
__all__ = ["agent", "command", "parser", "pipeline", "template", "worker"]