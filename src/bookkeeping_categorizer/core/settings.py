import os

from dotenv import find_dotenv, load_dotenv

from bookkeeping_categorizer.logger import get_logger

logger = get_logger(__name__)

DEFAULT_AUTO_CATEGORIZE_THRESHOLD = 0.6
DEFAULT_AUTO_CATEGORIZE_LIMIT = 100
DEFAULT_PORT = 8000

STORE_BACKENDS = ("json", "memory")

TRANSACTIONS_FILENAME = "transactions.json"
CORRECTIONS_FILENAME = "corrections.jsonl"

_ENV_KEYS_TO_LOG = (
    "LOG_LEVEL",
    "LOG_DIR",
    "DATA_DIR",
    "CONFIG_DIR",
    "STORE_BACKEND",
    "AUTO_CATEGORIZE_THRESHOLD",
    "AUTO_CATEGORIZE_LIMIT",
    "HOST",
    "PORT",
)


def _resolve_dotenv_path() -> str | None:
    config_dir = os.getenv("CONFIG_DIR")
    if config_dir:
        candidate = os.path.join(config_dir, ".env")
        if os.path.exists(candidate):
            return candidate
    resolved = find_dotenv(usecwd=True)
    return resolved or None


def load_environment() -> None:
    """Load a .env file without overriding variables already in the environment."""
    dotenv_path = _resolve_dotenv_path()
    if dotenv_path:
        load_dotenv(dotenv_path=dotenv_path, override=False)


def ensure_dir(path: str | None) -> None:
    if path and path not in {".", "./"}:
        os.makedirs(path, exist_ok=True)


def get_env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning(
            "[ENV] %s='%s' below minimum %s, using default %s.",
            name,
            raw,
            min_value,
            default,
        )
        return default
    return value


def get_env_float(
    name: str,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("[ENV] Invalid %s='%s', using default %s.", name, raw, default)
        return default
    if (min_value is not None and value < min_value) or (max_value is not None and value > max_value):
        logger.warning(
            "[ENV] %s='%s' outside [%s, %s], using default %s.",
            name,
            raw,
            min_value,
            max_value,
            default,
        )
        return default
    return value


def get_store_backend() -> str:
    backend = os.getenv("STORE_BACKEND", "json").strip().lower()
    if backend not in STORE_BACKENDS:
        logger.warning("[ENV] Unknown STORE_BACKEND='%s', using 'json'.", backend)
        return "json"
    return backend


def get_auto_categorize_threshold() -> float:
    return get_env_float(
        "AUTO_CATEGORIZE_THRESHOLD",
        DEFAULT_AUTO_CATEGORIZE_THRESHOLD,
        min_value=0.0,
        max_value=1.0,
    )


def get_auto_categorize_limit() -> int:
    return get_env_int("AUTO_CATEGORIZE_LIMIT", DEFAULT_AUTO_CATEGORIZE_LIMIT, min_value=1)


def data_path(filename: str) -> str:
    data_dir = os.getenv("DATA_DIR", ".")
    ensure_dir(data_dir)
    return os.path.join(data_dir, filename)


def log_environment() -> None:
    logger.info("[ENV] Logging configured environment variables.")
    for key in _ENV_KEYS_TO_LOG:
        value = os.getenv(key)
        logger.info("[ENV] %s=%s", key, "<unset>" if value is None else value)


load_environment()

DATA_DIR = os.getenv("DATA_DIR", ".")
ensure_dir(DATA_DIR)
