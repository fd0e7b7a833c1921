"""CLI entrypoint (deployctl <subcommand> ...)."""

from __future__ import annotations

import asyncio
import sys

from pydantic import ValidationError

from deployctl.core.config import Settings
from deployctl.core.exceptions import ConfigurationError, DeployctlError
from deployctl.subcommands import download_src
from deployctl.utils.logging import setup_logging

SUBCOMMANDS = {
    "download-src": download_src.run,
}

USAGE = """deployctl
Command line tool for deployments.

USAGE:
    deployctl <SUBCOMMAND> [OPTIONS]

SUBCOMMANDS:
    download-src    Download the source code of a deployment
"""


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        details = "; ".join(err["msg"] for err in exc.errors())
        raise ConfigurationError(f"Invalid configuration: {details}") from exc


def main(argv=None) -> int:
    argv = list(argv if argv is not None else sys.argv[1:])

    if not argv or argv[0] in ("-h", "--help"):
        print(USAGE)
        return 0 if argv else 1

    name, rest = argv[0], argv[1:]
    command = SUBCOMMANDS.get(name)
    if command is None:
        print(f"error: Unknown subcommand '{name}'. See 'deployctl --help'.", file=sys.stderr)
        return 1

    try:
        settings = _load_settings()
        setup_logging(settings.log_level, settings.log_format)
        return asyncio.run(command(rest, settings=settings))
    except DeployctlError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
