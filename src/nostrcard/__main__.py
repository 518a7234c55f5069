"""CLI entry point for nostrcard.

Two commands share one YAML configuration
([ApiConfig][nostrcard.services.api.configs.ApiConfig]):

* ``api`` runs the HTTP service (and the Prometheus endpoint when enabled)
  until SIGINT or SIGTERM.
* ``card`` resolves one identifier and writes its SVG card, or the resolved
  profile and badges as JSON.

Exit codes: ``0`` success, ``1`` failure, ``2`` invalid identifier, ``3``
profile not found, ``130`` interrupted.

Examples:
    ```bash
    python -m nostrcard api --config config/api.yaml
    python -m nostrcard card npub1... --output card.svg
    python -m nostrcard card nprofile1... --json --log-level DEBUG
    ```
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from nostrcard.core import (
    ConfigurationError,
    InternalError,
    InvalidIdentifierError,
    Logger,
    ProfileNotFoundError,
    RelayGateway,
    setup_logging,
    start_metrics_server,
)
from nostrcard.core.yaml import load_yaml
from nostrcard.models.constants import ServiceName
from nostrcard.services.aggregator import Aggregator
from nostrcard.services.api import Api, ApiConfig
from nostrcard.utils.http import load_card_images
from nostrcard.utils.svg import render_card


CONFIG_BASE = Path("config")
DEFAULT_CONFIG = CONFIG_BASE / "api.yaml"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_IDENTIFIER = 2
EXIT_NOT_FOUND = 3
EXIT_INTERRUPTED = 130

logger = Logger("cli")


def _load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML file as a dict, returning ``{}`` if the file does not exist."""
    if not path.exists():
        logger.warning("config_not_found", path=str(path))
        return {}
    return load_yaml(str(path))


def load_config(path: Path | None) -> ApiConfig:
    """Load the shared configuration; defaults apply when no file exists.

    Raises:
        ConfigurationError: If the file is invalid YAML or fails validation.
    """
    data = _load_yaml_dict(path or DEFAULT_CONFIG)
    try:
        return ApiConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


async def run_api(config: ApiConfig) -> int:
    """Run the HTTP service until a shutdown signal is received."""
    service = Api(config=config)

    metrics_config = config.metrics
    metrics_server = await start_metrics_server(metrics_config)
    if metrics_config.enabled:
        logger.info(
            "metrics_server_started",
            host=metrics_config.host,
            port=metrics_config.port,
            path=metrics_config.path,
        )

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("shutdown_signal", signal=sig.name)
        service.request_shutdown()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        async with service:
            await service.run_forever()
        return EXIT_OK
    except Exception as e:  # noqa: BLE001
        logger.error(f"{ServiceName.API}_failed", error=str(e))
        return EXIT_FAILURE
    finally:
        await metrics_server.stop()
        if metrics_config.enabled:
            logger.info("metrics_server_stopped")


async def run_card(
    config: ApiConfig,
    identifier: str,
    *,
    output: Path | None,
    as_json: bool,
) -> int:
    """Resolve one identifier and write its card (or JSON) to *output* or stdout."""
    aggregator = Aggregator(RelayGateway(config.gateway), config.badges)

    try:
        aggregation = await aggregator.aggregate(identifier)
    except InvalidIdentifierError as e:
        logger.error("invalid_identifier", identifier=identifier, error=str(e))
        return EXIT_INVALID_IDENTIFIER
    except ProfileNotFoundError as e:
        logger.error("profile_not_found", error=str(e))
        return EXIT_NOT_FOUND
    except InternalError as e:
        logger.error(f"{ServiceName.CARD}_failed", error=str(e))
        return EXIT_FAILURE

    if as_json:
        text = json.dumps(aggregation.to_dict(), indent=2, ensure_ascii=False)
    else:
        images = None
        if config.embed_images:
            images = await load_card_images(
                aggregation.profile,
                aggregation.badges,
                max_size=config.image_max_size,
                timeout=config.image_timeout,
            )
        text = render_card(aggregation.profile, identifier, aggregation.badges, images)

    if output is None:
        sys.stdout.write(text + "\n")
    else:
        output.write_text(text, encoding="utf-8")
        logger.info("card_written", path=str(output), badges=len(aggregation.badges))
    return EXIT_OK


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    ``--config`` and ``--log-level`` are accepted after either command.
    """
    common = argparse.ArgumentParser(add_help=False)

    common.add_argument(
        "--config",
        type=Path,
        help=f"Config path (default: {DEFAULT_CONFIG})",
    )

    common.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    parser = argparse.ArgumentParser(
        prog="nostrcard",
        description="Nostr profile card renderer",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(ServiceName.API, parents=[common], help="Run the HTTP card service")

    card = commands.add_parser(ServiceName.CARD, parents=[common], help="Render one card and exit")
    card.add_argument("identifier", help="npub or nprofile identifier")
    card.add_argument("--output", "-o", type=Path, help="Write to this file instead of stdout")
    card.add_argument("--json", action="store_true", help="Print profile and badges as JSON")

    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: parse args, load config and run the command."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args.config)
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error("config_invalid", error=str(e))
        return EXIT_FAILURE

    try:
        if args.command == ServiceName.API:
            return await run_api(config)
        return await run_card(config, args.identifier, output=args.output, as_json=args.json)
    except KeyboardInterrupt:
        logger.info("interrupted")
        return EXIT_INTERRUPTED


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    cli()
