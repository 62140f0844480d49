import asyncio

import httpx
import pytest

import main
from configs.env_config import Env
from utils.casting import to_bool, to_float, to_int
from utils.formatting import format_bytes, format_usage
from utils.logger.config import LogEvent, LogLevel, LoggerConfig
from utils.logger.handlers.base import BaseLogHandler
from utils.logger.handlers.file import ErrorFileHandler, RotatingFileHandler
from utils.logger.handlers.webhook import WebhookHandler, fence_code, pack_lines
from utils.logger.logger import Logger


def test_format_bytes_memory_detail():
    assert format_usage(8_000_000_000, 16_000_000_000, base=1000) == "8.00 GB / 16.00 GB"
    assert format_usage(8 * 1024**3, 16 * 1024**3) == "8.00 GB / 16.00 GB"


@pytest.mark.parametrize(
    "num, expected",
    [(0, "0 B"), (512, "512 B"), (1024, "1.00 KB"), (1536, "1.50 KB"), (1024**4, "1.00 TB")],
)
def test_format_bytes(num, expected):
    assert format_bytes(num) == expected


def test_casting():
    assert to_bool("yes") is True
    assert to_int(" 8080 ") == 8080
    assert to_float("0.5") == 0.5
    with pytest.raises(ValueError):
        to_bool("maybe")
    with pytest.raises(ValueError):
        to_int(True)


def test_env_validate_rejects_bad_values(monkeypatch):
    monkeypatch.setattr(Env, "METRICS_INTERVAL", "30")
    monkeypatch.setattr(Env, "PORT", "http")

    with pytest.raises(ValueError) as err:
        Env.validate()
    assert "METRICS_INTERVAL" in str(err.value)
    assert "PORT" in str(err.value)


def test_env_default_mount(monkeypatch):
    monkeypatch.setattr(Env, "MOUNT_POINT", "")
    assert Env.mount_point() in ("/", "C:\\")

    monkeypatch.setattr(Env, "MOUNT_POINT", "/srv/data")
    assert Env.mount_point() == "/srv/data"


def test_log_level_parse():
    assert LogLevel.parse("warning") is LogLevel.WARNING
    with pytest.raises(ValueError):
        LogLevel.parse("loud")


def test_logger_config_validation():
    with pytest.raises(ValueError):
        LoggerConfig(str_format="%(asctime)s")
    with pytest.raises(ValueError):
        LoggerConfig(buffer_capacity=0)


class CollectingHandler(BaseLogHandler):
    def __init__(self):
        super().__init__()
        self.batches = []

    async def push(self, records):
        self.batches.append(list(records))


@pytest.mark.asyncio
async def test_logger_filters_and_flushes_on_shutdown():
    handler = CollectingHandler()
    logger = Logger(LoggerConfig(base_level=LogLevel.INFO, do_stdout=False), name="t", handlers=[handler])

    await logger.start()
    logger.debug("hidden")
    logger.info("kept")
    await logger.shutdown()

    texts = [ev.text for batch in handler.batches for ev in batch]
    assert len(texts) == 1
    assert texts[0].endswith("[INFO] t - kept")


@pytest.mark.asyncio
async def test_logger_flushes_warnings_immediately():
    handler = CollectingHandler()
    logger = Logger(LoggerConfig(do_stdout=False), name="t", handlers=[handler])

    await logger.start()
    logger.warning("disk sample failed")
    await asyncio.sleep(0.05)
    try:
        assert handler.batches and handler.batches[-1][-1].level is LogLevel.WARNING
    finally:
        await logger.shutdown()


def test_logger_rejects_foreign_handler():
    with pytest.raises(TypeError):
        Logger(handlers=[object()])


@pytest.mark.asyncio
async def test_file_handlers_split_errors(tmp_path):
    everything = RotatingFileHandler(str(tmp_path), filename_prefix="metrics")
    errors = ErrorFileHandler(str(tmp_path), filename_prefix="metrics")
    records = [LogEvent("ok", LogLevel.INFO), LogEvent("bad", LogLevel.ERROR)]

    await everything.push(records)
    await errors.push(records)

    assert everything.current_filepath().read_text() == "ok\nbad\n"
    assert errors.current_filepath().read_text() == "bad\n"
    assert errors.current_filepath().name.endswith(".error.log")


def test_pack_lines_respects_limit():
    posts = pack_lines(["a" * 6, "b" * 3, "c" * 12], limit=10)

    assert all(len(p) <= 10 for p in posts)
    assert "".join(p.replace("\n", "") for p in posts) == "a" * 6 + "b" * 3 + "c" * 12


def test_fence_code_escapes_fences():
    assert fence_code("x```y").count("```") == 3


def _webhook(statuses):
    """Webhook handler whose transport answers with ``statuses`` in turn."""
    seen = []

    def reply(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        code = statuses[min(len(seen), len(statuses)) - 1]
        if code == 429:
            return httpx.Response(429, json={"retry_after": 0})
        return httpx.Response(code)

    handler = WebhookHandler("https://hooks.example/alert", transport=httpx.MockTransport(reply),
                             server_error_backoff=0)
    return handler, seen


@pytest.mark.asyncio
async def test_webhook_resends_after_rate_limit():
    handler, seen = _webhook([429, 500, 204])

    await handler.start()
    await handler.push([LogEvent("refresh aborted", LogLevel.ERROR), LogEvent("noise", LogLevel.INFO)])
    await handler.shutdown()

    assert len(seen) == 3
    assert all(b"refresh aborted" in request.content for request in seen)
    assert all(b"noise" not in request.content for request in seen)


@pytest.mark.asyncio
async def test_webhook_gives_up_after_max_attempts():
    handler, seen = _webhook([503])

    await handler.start()
    await handler.push([LogEvent("disk sample failed", LogLevel.ERROR)])
    await handler.shutdown()

    assert len(seen) == handler.max_attempts


CLI_KEYS = ("HOST", "PORT", "DATABASE_PATH", "METRICS_INTERVAL", "MOUNT_POINT", "SAMPLER_BACKEND")


@pytest.fixture
def restore_env(monkeypatch):
    for key in CLI_KEYS:
        monkeypatch.setattr(Env, key, getattr(Env, key))


def test_cli_flags_override_environment(restore_env):
    main.apply_args(main.parse_args(["--port", "9090", "--metrics-interval", "2", "--mount-point", "/srv"]))

    assert Env.port() == 9090
    assert Env.metrics_interval() == 2.0
    assert Env.mount_point() == "/srv"


def test_cli_rejects_slow_interval(restore_env):
    with pytest.raises(ValueError):
        main.apply_args(main.parse_args(["--metrics-interval", "60"]))
