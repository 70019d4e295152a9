from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from maven_mirror.config import YamlConfigLoader
from maven_mirror.config.models import AppConfig, ConfigLoadRequest
from maven_mirror.logging import init_logging
from maven_mirror.mirror import MavenCopier, RootValidationError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maven-mirror", description="Mirror an HTTP Maven repository tree to disk")
    parser.add_argument(
        "--config",
        default="data/config/config.yaml",
        help="Path to config.yaml (default: data/config/config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: mirror
    subparsers.add_parser("mirror", help="Mirror the configured repository URL")

    # Command: validate
    subparsers.add_parser("validate", help="Check that the configured URL is a directory listing")

    return parser


def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
    )
    return loader.load(request)


async def _mirror(config: AppConfig) -> int:
    copier = MavenCopier(config.mirror)
    try:
        await copier.start()
    except RootValidationError:
        logger.exception("Repository root validation failed. url=%s", config.mirror.url)
        return 1
    return 0


async def _validate(config: AppConfig) -> int:
    copier = MavenCopier(config.mirror)
    try:
        links = await copier.validate()
    except RootValidationError:
        logger.exception("Repository root validation failed. url=%s", config.mirror.url)
        return 1
    logger.info("Repository root is valid. url=%s links=%d", config.mirror.url, len(links))
    return 0


async def _main_async() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    config = _load_config(args)
    init_logging(config.logging, log_folder=config.mirror.log_folder)

    if args.command == "mirror":
        return await _mirror(config)
    if args.command == "validate":
        return await _validate(config)
    return 2


def main() -> None:
    try:
        exit_code = asyncio.run(_main_async())
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
