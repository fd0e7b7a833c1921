"""The `download-src` subcommand."""

from __future__ import annotations

import argparse
import sys
from contextlib import aclosing
from typing import List, Optional, TextIO, assert_never

import structlog

from deployctl.api.client import API, DeploymentSource
from deployctl.core.config import Settings
from deployctl.core.exceptions import APIError, SourceDownloadError, UsageError
from deployctl.core.models import Download, Filesystem, Help, ResolvedAction, Stdout
from deployctl.deploy.consumer import consume_entries
from deployctl.utils.access_token import EnvTokenProvisioner
from deployctl.utils.logging import bind_download_context

logger = structlog.get_logger()

HELP = """deployctl download-src
Download the source code of a deployment, either to stdout (by default) or to the specified directory.

USAGE:
    deployctl download-src [OPTIONS] <DEPLOYMENT_ID>

POSITIONAL ARGUMENTS:
    <DEPLOYMENT_ID>    The deployment ID to download. Example: abcd1234

OPTIONS:
        -h, --help         Prints this help information
        --stdout           Write the downloaded source code to stdout. Exclusive with --output-dir.
                           If neither --stdout nor --output-dir is given, defaults to stdout.
        --output-dir=<DIR> Write the downloaded source code to within the specified directory. Exclusive with --stdout.
                           If neither --stdout nor --output-dir is given, defaults to stdout.
        --token=<TOKEN>    The API token to use (defaults to DENO_DEPLOY_TOKEN env var)
"""

HELP_HINT = "See 'deployctl download-src --help' for more info."
HELP_FLAGS = ("-h", "--help")


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(f"{message}. {HELP_HINT}")


def _build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(prog="deployctl download-src", add_help=False, allow_abbrev=False)
    p.add_argument("-h", "--help", action="store_true")
    p.add_argument("--stdout", action="store_true")
    p.add_argument("--output-dir", dest="output_dir", default=None)
    p.add_argument("--token", default=None)
    p.add_argument("positionals", nargs="*")
    return p


def parse_raw_args(argv: List[str]) -> argparse.Namespace:
    """Parse the subcommand's argv; unknown options are ignored.

    A malformed command line that still asks for help parses as help.
    """
    try:
        args, _unknown = _build_parser().parse_known_args(argv)
    except UsageError:
        if any(arg in HELP_FLAGS for arg in argv):
            return argparse.Namespace(help=True, stdout=False, output_dir=None, token=None, positionals=[])
        raise
    return args


def parse_args_for_download_src(raw_args: argparse.Namespace) -> ResolvedAction:
    if raw_args.help:
        return Help()

    if not raw_args.positionals:
        raise UsageError(f"Deployment ID is required but not provided. {HELP_HINT}")
    deployment_id = str(raw_args.positionals[0])

    # --stdout wins over --output-dir; an empty --output-dir= still counts as given
    if raw_args.stdout:
        output_to = Stdout()
    elif isinstance(raw_args.output_dir, str):
        output_to = Filesystem(directory=raw_args.output_dir)
    else:
        output_to = Stdout()

    return Download(output_to=output_to, deployment_id=deployment_id, token=raw_args.token)


async def download_src(
    action: Download,
    *,
    api: Optional[DeploymentSource] = None,
    out: Optional[TextIO] = None,
    settings: Optional[Settings] = None,
) -> None:
    bind_download_context(action.deployment_id)
    if api is None:
        api = (
            API.from_token(action.token, settings=settings)
            if action.token
            else API.with_token_provisioner(EnvTokenProvisioner(settings), settings=settings)
        )

    logger.debug("Downloading deployment source", output_to=type(action.output_to).__name__)
    try:
        async with aclosing(api.download_deployment(action.deployment_id)) as entries:
            await consume_entries(entries, action.output_to, out=out)
    except APIError as exc:
        raise SourceDownloadError(
            f"Failed to download the source code: {exc}",
            status=exc.status,
        ) from exc


async def run(
    argv: List[str],
    *,
    api: Optional[DeploymentSource] = None,
    out: Optional[TextIO] = None,
    settings: Optional[Settings] = None,
) -> int:
    """Run `download-src` and return the process exit status."""
    action = parse_args_for_download_src(parse_raw_args(argv))
    match action:
        case Help():
            print(HELP, file=out or sys.stdout)
        case Download():
            await download_src(action, api=api, out=out, settings=settings)
        case _:
            assert_never(action)
    return 0
