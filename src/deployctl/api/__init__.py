"""Deployment API client."""

from .client import API, DeploymentSource

__all__ = ["API", "DeploymentSource"]
