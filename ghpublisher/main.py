"""Entry point for the ghpublisher command."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import PublicationError, load_config, load_publication
from .git import GhApiClient, Publisher

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghpublisher",
        description="Publish documents to GitHub repositories through pull requests.",
    )
    parser.add_argument(
        "--project",
        type=Path,
        default=None,
        help="Directory holding ghpublisher.yaml (default: current directory)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("check", help="Check that every target and base branch exists")

    open_branch = commands.add_parser("open-branch", help="Create the working branch")
    open_branch.add_argument("branch", nargs="?", default=None)

    finish = commands.add_parser("finish", help="Open, merge and delete the working branch")
    finish.add_argument("branch")

    clean = commands.add_parser("clean", help="Delete remote files no longer shared")
    clean.add_argument(
        "--publication",
        type=Path,
        default=Path("publication.yaml"),
        help="YAML list of the files currently shared",
    )
    clean.add_argument("--branch", default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run ghpublisher."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    project_path = args.project.resolve() if args.project else Path.cwd()
    settings = load_config(project_path)
    if not settings.targets:
        logger.error("No target repository configured")
        return 1

    publisher = Publisher(GhApiClient(), settings)

    if args.command == "check":
        checks = publisher.check(silent=False)
        return 0 if len(checks) == len(settings.targets) and all(c.ok for c in checks) else 1

    if args.command == "open-branch":
        branch_name, creations = publisher.open_branch(args.branch)
        print(branch_name)
        return 0 if all(created.ok for created in creations) else 1

    if args.command == "finish":
        return 0 if publisher.finish(args.branch) else 1

    if args.command == "clean":
        publication_path = args.publication
        if not publication_path.is_absolute():
            publication_path = project_path / publication_path
        try:
            publication = load_publication(publication_path, settings)
        except PublicationError as e:
            logger.error(f"{e}; nothing was deleted")
            return 1
        result = publisher.clean(publication, args.branch)
        for target, outcome in zip(settings.targets, result.outcomes):
            for path in outcome.deleted:
                logger.info(f"{target.slug}: deleted {path}")
            for path in outcome.undeleted:
                logger.warning(f"{target.slug}: could not delete {path}")
        return 0 if result.success else 1

    return 1


if __name__ == "__main__":
    sys.exit(main())
