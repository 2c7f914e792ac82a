"""CLI interface for dirmirror."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .config import config
from .exceptions import DirMirrorError
from .mirror import IgnoreMatcher, MatchMode, MirrorEngine
from .output import OutputFormatter

logger = logging.getLogger(__name__)


@click.group()
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output the run summary as JSON")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option()
@click.pass_context
def main(ctx: Any, quiet: bool, json: bool, verbose: bool) -> None:
    """dirmirror - Mirror a source directory tree onto a destination."""
    ctx.ensure_object(dict)
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    # Configure logging based on verbose flag
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("dirmirror").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.argument("source", type=click.Path(file_okay=True, dir_okay=True))
@click.argument("destination", type=click.Path(file_okay=False, dir_okay=True))
@click.argument("ignore_file", required=False, default=None)
@click.option(
    "--dry-run",
    "-n",
    is_flag=True,
    help="Show what would be done without changing anything",
)
@click.option(
    "--match-mode",
    "-m",
    type=click.Choice([m.value for m in MatchMode], case_sensitive=False),
    default=None,
    help=(
        "How ignore patterns match paths (default: substring, "
        "or $DIRMIRROR_MATCH_MODE)"
    ),
)
@click.pass_context
def sync(
    ctx: Any,
    source: str,
    destination: str,
    ignore_file: Optional[str],
    dry_run: bool,
    match_mode: Optional[str],
) -> None:
    """Mirror SOURCE onto DESTINATION.

    Files that exist only in DESTINATION are deleted. Files that are missing
    from DESTINATION, or whose modification time or size differs, are copied
    from SOURCE with their timestamps.

    IGNORE_FILE lists one rule per line. A rule excludes every path that
    contains it; a rule starting with '!' re-includes matching paths and
    later rules override earlier ones. Lines starting with '#' are comments.
    A missing ignore file means no rules.

    Examples:
        dirmirror sync ./site /backup/site
        dirmirror sync ./site /backup/site .mirrorignore
        dirmirror sync ./site /backup/site .mirrorignore --dry-run
        dirmirror sync ./site /backup/site rules.txt --match-mode glob
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        mode = config.resolve_match_mode(match_mode)
    except DirMirrorError as e:
        out.error(str(e))
        ctx.exit(1)
        return  # Unreachable, but helps type checker

    if mode != MatchMode.SUBSTRING:
        out.warning(
            f"Using {mode.value} matching for ignore rules "
            "(patterns are no longer plain substrings)"
        )

    ignore_path = config.resolve_ignore_file(ignore_file)
    ignore = IgnoreMatcher.from_file(ignore_path, mode=mode)
    if ignore_path is not None and not out.quiet:
        out.info(f"Loaded {len(ignore.rules)} ignore rule(s) from {ignore_path}")

    engine = MirrorEngine(ignore=ignore, output=out)

    try:
        summary = engine.mirror(Path(source), Path(destination), dry_run=dry_run)
    except DirMirrorError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    except OSError as e:
        out.error(f"Mirror aborted: {e}")
        ctx.exit(1)
        return
    except KeyboardInterrupt:
        out.warning("\nMirror cancelled by user")
        ctx.exit(130)
        return

    if out.json_output:
        out.output_json(summary.to_dict())

    if not summary.ok:
        ctx.exit(1)


if __name__ == "__main__":
    main()
