import os
from dotenv import find_dotenv, load_dotenv

# .env is searched from the working directory upwards
load_dotenv(find_dotenv(usecwd=True))


def _get_int(name: str, default: int) -> int:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


# --- Web server ---
HOST = os.getenv("SQUADRA_HOST", "127.0.0.1")
PORT = _get_int("SQUADRA_PORT", 7122)

# --- Persistence ---
AUTOSAVE_DIR = os.getenv("SQUADRA_AUTOSAVE_DIR", "autosave")

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
