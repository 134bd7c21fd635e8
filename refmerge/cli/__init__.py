"""refmerge command-line interface.

Built with Click and Rich; configuration is read from YAML files.
"""

from refmerge.cli.main import cli

__all__ = ["cli"]
