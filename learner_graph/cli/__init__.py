"""Command-line interface for learner-graph."""

from learner_graph.cli.main import app, main

__all__ = ["app", "main"]
