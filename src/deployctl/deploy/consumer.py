"""Consumption of the deployment source stream."""

from __future__ import annotations

import os
import sys
from typing import AsyncIterable, Optional, TextIO, assert_never

import aiofiles
import aiofiles.os
import structlog

from deployctl.core.models import DeploymentSourceEntry, Filesystem, OutputTarget, Stdout
from deployctl.deploy.paths import specifier_to_path

logger = structlog.get_logger()

RULE = "-" * 80


def render_entry(entry: DeploymentSourceEntry) -> str:
    """Human readable block printed for an entry in stdout mode."""
    return (
        f"{RULE}\n"
        f"specifier: {entry.specifier}\n"
        f"kind:      {entry.kind}\n"
        f"\n"
        f"{entry.source}\n"
    )


async def _print_entries(entries: AsyncIterable[DeploymentSourceEntry], out: TextIO) -> None:
    async for entry in entries:
        print(render_entry(entry), file=out)


async def _write_entry(path: str, entry: DeploymentSourceEntry) -> None:
    parent = os.path.dirname(path)
    if parent:
        await aiofiles.os.makedirs(parent, exist_ok=True)
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(entry.source)


async def _write_entries(entries: AsyncIterable[DeploymentSourceEntry], directory: str) -> None:
    try:
        await aiofiles.os.makedirs(directory or ".", exist_ok=True)
    except OSError as exc:
        logger.error("Failed to create output directory", directory=directory, error=str(exc))
        raise

    written = skipped = 0
    async for entry in entries:
        path = specifier_to_path(entry.specifier, directory)
        if path is None:
            skipped += 1
            logger.warning("Skipping non-local entry", specifier=entry.specifier)
            continue
        try:
            await _write_entry(path, entry)
        except OSError as exc:
            logger.error("Failed to write file", path=path, error=str(exc))
            raise
        written += 1
        logger.info("Wrote file", path=path, kind=entry.kind)

    logger.info("Source code downloaded", directory=directory, files=written, skipped=skipped)


async def consume_entries(
    entries: AsyncIterable[DeploymentSourceEntry],
    output_to: OutputTarget,
    *,
    out: Optional[TextIO] = None,
) -> None:
    """Route every entry of the stream to the chosen output, in stream order.

    Stdout mode prints all entries. Filesystem mode writes entries whose
    specifier maps below the output directory and skips the rest with a
    warning. Errors abort the pass; files already written stay.
    """
    match output_to:
        case Stdout():
            await _print_entries(entries, out or sys.stdout)
        case Filesystem(directory=directory):
            await _write_entries(entries, directory)
        case _:
            assert_never(output_to)
