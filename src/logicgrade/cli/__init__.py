"""Command-line interface for logicgrade."""
