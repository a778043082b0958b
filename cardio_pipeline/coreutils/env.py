from dotenv import load_dotenv
import os

load_dotenv()  # pick up data paths from a local .env


def env_get(key: str, default: str | None = None) -> str | None:
    """Get environment variable or return default."""
    return os.getenv(key, default)


def env_get_int(key: str, default: int | None = None) -> int | None:
    """Get an integer environment variable, blank values fall back to default."""
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {key} must be an integer, got {value!r}")
