"""deployctl - command line client for deployments."""

__version__ = "0.1.0"
