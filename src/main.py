"""Command-line entrypoint serving the dashboard API with uvicorn."""

import argparse
from typing import Optional, Sequence

import uvicorn

from api.app import create_app
from configs.env_config import Env


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="homelab-dashboard", description="Homelab dashboard backend")
    parser.add_argument("--host", default=Env.HOST, help="Bind address")
    parser.add_argument("--port", default=Env.PORT, help="Server port")
    parser.add_argument("--db", default=Env.DATABASE_PATH, help="Database path")
    parser.add_argument("--metrics-interval", default=Env.METRICS_INTERVAL,
                        help="Metrics collection interval in seconds")
    parser.add_argument("--mount-point", default=Env.MOUNT_POINT, help="Disk mount point for metrics")
    parser.add_argument("--sampler", default=Env.SAMPLER_BACKEND, choices=("auto", "psutil", "procfs"),
                        help="Counter source")
    return parser.parse_args(argv)


def apply_args(args: argparse.Namespace) -> None:
    """Copy command-line overrides onto ``Env`` and re-validate.

    :raises ValueError: If the resulting configuration is invalid.
    """
    Env.HOST = args.host
    Env.PORT = str(args.port)
    Env.DATABASE_PATH = args.db
    Env.METRICS_INTERVAL = str(args.metrics_interval)
    Env.MOUNT_POINT = args.mount_point
    Env.SAMPLER_BACKEND = args.sampler
    Env.validate()


def main(argv: Optional[Sequence[str]] = None) -> None:
    apply_args(parse_args(argv))

    print(f"Starting server on {Env.HOST}:{Env.port()}")
    print(f"Database: {Env.DATABASE_PATH}")
    print(f"Metrics interval: {Env.metrics_interval()}s, mount: {Env.mount_point()}")
    uvicorn.run(create_app(), host=Env.HOST, port=Env.port(), log_level="info")


if __name__ == "__main__":
    main()
