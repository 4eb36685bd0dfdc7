"""
Keyper Service - FastAPI application entry point.
"""

import argparse
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from .config import get_config, set_config, KeyperServiceConfig
from .errors import DirectoryError
from .metrics import set_app_info, update_directory_counts
from .scripts import render_auth_script, render_setup_script
from .service import KeyService, get_key_service, set_key_service
from .version import GIT_COMMIT, __version__
from .api import keys_router, health_router, scripts_router, metrics_router

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def setup_logging(config: KeyperServiceConfig):
    """Setup logging configuration"""
    handlers = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )

    # Set specific log levels for noisy libraries
    logging.getLogger('requests').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    config = get_config()
    service = get_key_service()
    stats = service.directory.get_stats()

    # Startup
    logger.info("=" * 60)
    logger.info(f"Keyper Service v{__version__} ('{GIT_COMMIT}')")
    logger.info("=" * 60)
    logger.info(f"Host: {config.host}:{config.port} (TLS: {'on' if config.tls_enabled else 'off'})")
    logger.info(f"Public URL: {config.url}")
    logger.info(f"Directory: {config.directory_file}")
    logger.info(f"  {stats['users']} users ({stats['remote_key_entries']} remote key entries)")
    logger.info(f"  {stats['servers']} servers, {stats['user_groups']} user groups, "
                f"{stats['server_groups']} server groups")
    logger.info(f"Key fetch interval: {service.refresher.interval}s")
    logger.info("=" * 60)

    set_app_info(__version__, GIT_COMMIT)
    update_directory_counts(stats)
    service.start()

    logger.info("Keyper Service ready")

    yield

    # Shutdown
    logger.info("Shutting down Keyper Service")
    service.stop()
    logger.info("Keyper Service stopped")


# FastAPI app with lifespan
app = FastAPI(
    title="Keyper Service",
    description="SSH public key distribution for AuthorizedKeysCommand",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(keys_router, prefix="/api")
app.include_router(health_router)
app.include_router(scripts_router)
app.include_router(metrics_router)


def build_parser() -> argparse.ArgumentParser:
    env = KeyperServiceConfig.from_env()
    parser = argparse.ArgumentParser(description="Keyper Service")
    parser.add_argument("--host", type=str, default=env.host,
                        help=f"Host to bind to (default: {env.host})")
    parser.add_argument("--port", type=int, default=env.port,
                        help=f"Port to run the service on (default: {env.port})")
    parser.add_argument("--url", type=str, default=env.url,
                        help=f"Public service URL used in client scripts (default: {env.url})")
    parser.add_argument("--config", type=str, default=env.directory_file,
                        help=f"Path to the YAML directory file (default: {env.directory_file})")
    parser.add_argument("--keyfetch", type=float, default=env.key_fetch_interval,
                        help=f"Remote key refresh interval in seconds (default: {env.key_fetch_interval:g})")
    parser.add_argument("--fetch-timeout", type=float, default=env.fetch_timeout,
                        help=f"Timeout per remote key fetch in seconds (default: {env.fetch_timeout:g})")
    parser.add_argument("--certfile", type=str, default=env.cert_file, help="Path to a TLS cert file")
    parser.add_argument("--keyfile", type=str, default=env.key_file, help="Path to a TLS key file")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        default=env.log_level.upper(), help=f"Logging level (default: {env.log_level})")
    parser.add_argument("--log-file", type=str, default=env.log_file, help="Also log to this file")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--auth-script", action="store_true", help="Print auth.sh and exit")
    parser.add_argument("--setup-script", action="store_true", help="Print setup.sh and exit")
    return parser


def main(argv=None):
    """Run the Keyper Service."""
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"keyper-service {__version__} (git-commit: '{GIT_COMMIT}')")
        return 0
    if args.auth_script:
        sys.stdout.write(render_auth_script(args.url))
        return 0
    if args.setup_script:
        sys.stdout.write(render_setup_script(args.url))
        return 0

    config = KeyperServiceConfig(
        host=args.host,
        port=args.port,
        url=args.url,
        cert_file=args.certfile,
        key_file=args.keyfile,
        directory_file=args.config,
        key_fetch_interval=args.keyfetch,
        fetch_timeout=args.fetch_timeout,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    set_config(config)
    setup_logging(config)

    # The directory is loaded and validated before anything is served
    try:
        set_key_service(KeyService.from_config(config))
    except DirectoryError as e:
        logger.error(f"Invalid directory: {e}")
        return 1

    logger.info(f"Starting Keyper Service on {config.host}:{config.port}")

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        ssl_certfile=config.cert_file if config.tls_enabled else None,
        ssl_keyfile=config.key_file if config.tls_enabled else None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
