"""Data models for the source download pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class DeploymentSourceEntry(BaseModel):
    """One file of a deployment as sent by the API."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    specifier: str
    kind: str
    source: str


@dataclass(frozen=True)
class Stdout:
    """Print every entry to standard output."""


@dataclass(frozen=True)
class Filesystem:
    """Write local entries below `directory`."""

    directory: str


OutputTarget = Union[Stdout, Filesystem]


@dataclass(frozen=True)
class Help:
    """Show the subcommand help."""


@dataclass(frozen=True)
class Download:
    output_to: OutputTarget
    deployment_id: str
    token: Optional[str] = None


ResolvedAction = Union[Help, Download]
