"""CLI entry point for camgate."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from camgate.config import CamgateConfig, load_config
from camgate.credentials import CredentialStore, hash_password, load_credentials
from camgate.errors import StartupError
from camgate.logging_config import configure_logging
from camgate.server import create_app
from camgate.storage import create_object_store

logger = logging.getLogger("camgate")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    ``serve`` is assumed when no subcommand is given.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in ("serve", "hash-password", "-h", "--help"):
        argv.insert(0, "serve")

    parser = argparse.ArgumentParser(
        prog="camgate",
        description="camgate - authenticated browser for a date-partitioned camera bucket",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP/HTTPS listeners")
    serve.add_argument(
        "--config",
        type=Path,
        default=Path("camgate.yaml"),
        help="Path to YAML configuration file (default: camgate.yaml)",
    )
    serve.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address to bind to (overrides config)",
    )
    serve.add_argument(
        "--http-port",
        type=int,
        default=None,
        help="Plaintext port, 0 disables (overrides config)",
    )
    serve.add_argument(
        "--https-port",
        type=int,
        default=None,
        help="TLS port, 0 disables (overrides config)",
    )
    serve.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config, default: INFO)",
    )
    serve.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )

    hasher = subparsers.add_parser(
        "hash-password", help="Print a bcrypt hash for the credential file"
    )
    hasher.add_argument("password", help="The plaintext password to hash")
    hasher.add_argument(
        "--rounds", type=int, default=12, help="bcrypt cost factor (default: 12)"
    )

    return parser.parse_args(argv)


def check_tls_files(config: CamgateConfig) -> None:
    """Verify the TLS material is readable when the HTTPS listener is on.

    Raises:
        StartupError: If any of the key, certificate or chain files is missing.
    """
    if not config.server.https_port:
        return
    for label, name in (
        ("key", config.tls.key_file),
        ("certificate", config.tls.cert_file),
        ("chain", config.tls.chain_file),
    ):
        path = Path(name)
        if not path.is_file():
            raise StartupError(f"TLS {label} file not found: {path}")
        try:
            with open(path, "rb"):
                pass
        except OSError as exc:
            raise StartupError(f"TLS {label} file unreadable: {path}: {exc}") from exc


def build_servers(config: CamgateConfig, app) -> list[uvicorn.Server]:
    """Create one uvicorn server per enabled listener.

    Both servers share ``app``. Lifespan is off because the store is opened
    and closed by ``serve`` rather than by each listener.
    """
    common = dict(
        host=config.server.host,
        log_level=config.server.log_level.lower(),
        lifespan="off",
        access_log=False,
        timeout_keep_alive=5,
    )
    servers = []
    if config.server.http_port:
        servers.append(
            uvicorn.Server(uvicorn.Config(app, port=config.server.http_port, **common))
        )
    if config.server.https_port:
        servers.append(
            uvicorn.Server(
                uvicorn.Config(
                    app,
                    port=config.server.https_port,
                    ssl_keyfile=config.tls.key_file,
                    ssl_certfile=config.tls.cert_file,
                    ssl_ca_certs=config.tls.chain_file,
                    **common,
                )
            )
        )
    return servers


async def serve(config: CamgateConfig, credentials: CredentialStore) -> None:
    """Open the store and run every enabled listener until they exit."""
    store = create_object_store(config.storage)
    await store.init()
    try:
        app = create_app(config, credentials, store)
        servers = build_servers(config, app)
        for server in servers:
            logger.info(
                "Listening on %s:%d (%s)",
                server.config.host,
                server.config.port,
                "https" if server.config.is_ssl else "http",
            )
        await asyncio.gather(*(server.serve() for server in servers))
    finally:
        await store.close()


def run_serve(args: argparse.Namespace) -> None:
    """Load configuration and collaborators, then start the listeners.

    Exits with status 1 on any startup failure.
    """
    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        logger.error("Config file not found: %s", args.config)
        sys.exit(1)
    except Exception as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)

    if args.host is not None:
        config.server.host = args.host
    if args.http_port is not None:
        config.server.http_port = args.http_port
    if args.https_port is not None:
        config.server.https_port = args.https_port
    if args.log_level is not None:
        config.server.log_level = args.log_level
    if args.log_format is not None:
        config.server.log_format = args.log_format

    configure_logging(level=config.server.log_level, fmt=config.server.log_format)

    try:
        credentials = load_credentials(config.auth.passwords_file)
        check_tls_files(config)
        # Fail on a bad backend name before any listener starts.
        create_object_store(config.storage)
    except (StartupError, ValueError) as exc:
        logger.error("Startup failed: %s", exc)
        sys.exit(1)

    if not config.server.http_port and not config.server.https_port:
        logger.warning("Both http_port and https_port are 0; nothing to serve")
        return

    if config.observability.metrics_port:
        from camgate import metrics

        metrics.start_exporter(config.observability.metrics_port, host=config.server.host)
        logger.info("Metrics exporter on port %d", config.observability.metrics_port)

    asyncio.run(serve(config, credentials))


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the camgate CLI.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].
    """
    args = parse_args(argv)
    if args.command == "hash-password":
        print(hash_password(args.password, rounds=args.rounds))
        return
    run_serve(args)


if __name__ == "__main__":
    main()
