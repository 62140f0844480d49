"""Environment-backed settings for the dashboard backend."""

import os
import sys

from dotenv import load_dotenv

from utils.casting import to_bool, to_float, to_int

load_dotenv()


def _default_mount() -> str:
    return "C:\\" if sys.platform.startswith("win") else "/"


class Env:
    # HTTP
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = os.getenv("PORT", "8080")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Catalog
    DATABASE_PATH = os.getenv("DATABASE_PATH", "data/homelab.db")

    # Metrics
    METRICS_INTERVAL = os.getenv("METRICS_INTERVAL", "5")
    MOUNT_POINT = os.getenv("MOUNT_POINT", "")
    SAMPLE_TIMEOUT = os.getenv("SAMPLE_TIMEOUT", "0.5")
    SAMPLER_BACKEND = os.getenv("SAMPLER_BACKEND", "auto")

    # Logging
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_STDOUT = os.getenv("LOG_STDOUT", "true")
    ALERT_WEBHOOK = os.getenv("ALERT_WEBHOOK")

    @classmethod
    def port(cls) -> int:
        return to_int(cls.PORT)

    @classmethod
    def metrics_interval(cls) -> float:
        return to_float(cls.METRICS_INTERVAL)

    @classmethod
    def sample_timeout(cls) -> float:
        return to_float(cls.SAMPLE_TIMEOUT)

    @classmethod
    def mount_point(cls) -> str:
        return cls.MOUNT_POINT or _default_mount()

    @classmethod
    def log_stdout(cls) -> bool:
        return to_bool(cls.LOG_STDOUT)

    @classmethod
    def cors_origins(cls) -> list[str]:
        return [origin.strip() for origin in cls.CORS_ORIGINS.split(",") if origin.strip()]

    @classmethod
    def validate(cls):
        problems = []

        try:
            port = cls.port()
            if not 0 < port < 65536:
                problems.append(f"PORT out of range: {port}")
        except ValueError:
            problems.append(f"PORT is not an integer: {cls.PORT!r}")

        try:
            interval = cls.metrics_interval()
            # The dashboard polls every 5 seconds; refreshing slower would serve stale data.
            if not 0 < interval <= 5:
                problems.append(f"METRICS_INTERVAL must be in (0, 5]: {interval}")
        except ValueError:
            problems.append(f"METRICS_INTERVAL is not a number: {cls.METRICS_INTERVAL!r}")

        try:
            if cls.sample_timeout() <= 0:
                problems.append(f"SAMPLE_TIMEOUT must be > 0: {cls.SAMPLE_TIMEOUT}")
        except ValueError:
            problems.append(f"SAMPLE_TIMEOUT is not a number: {cls.SAMPLE_TIMEOUT!r}")

        if cls.SAMPLER_BACKEND not in ("auto", "psutil", "procfs"):
            problems.append(f"SAMPLER_BACKEND must be auto, psutil or procfs: {cls.SAMPLER_BACKEND!r}")

        if cls.LOG_LEVEL.upper() not in ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            problems.append(f"LOG_LEVEL is not a known level: {cls.LOG_LEVEL!r}")

        try:
            cls.log_stdout()
        except ValueError:
            problems.append(f"LOG_STDOUT is not a boolean: {cls.LOG_STDOUT!r}")

        if problems:
            raise ValueError(
                f"Invalid environment configuration: {'; '.join(problems)}"
            )


Env.validate()
