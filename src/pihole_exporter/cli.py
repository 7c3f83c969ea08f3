from __future__ import annotations

import argparse
import logging

from pihole_exporter import __version__
from pihole_exporter.config import Settings
from pihole_exporter.main import create_app

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pihole-exporter", description="Pi-hole Prometheus exporter")
    parser.add_argument("--host", dest="exporter_host", default=None, help="IP for exporter instance. Usually 127.0.0.1 or 0.0.0.0")
    parser.add_argument("-p", "--port", dest="exporter_port", type=int, default=None, help="Port to expose for scraping")
    parser.add_argument("--pihole", dest="pihole_host", default=None, help="Base url/port of Pi-hole instance")
    parser.add_argument("--tls", dest="pihole_tls", action="store_true", default=None, help="Use https for Pi-hole communication")
    parser.add_argument("-P", "--password", dest="pihole_password", default=None, help="Authentication password (if required)")
    parser.add_argument("--log-level", dest="log_level", default=None, help="Logging level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace) -> Settings:
    # Flags win over environment variables; unset flags fall through to env and defaults.
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    return Settings(**overrides)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def main(argv: list[str] | None = None) -> int:
    import uvicorn

    settings = settings_from_args(_parse_args(argv))
    configure_logging(settings.log_level)
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.exporter_host,
        port=settings.exporter_port,
        lifespan="on",
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
