"""Building blocks for REST API command-line tools: flags, command sets, table output and agent sessions."""

__version__ = "0.1.0"