import os
from dotenv import load_dotenv

# Load env vars from .env file
load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- AI summarisation ---
# ANTHROPIC_API_KEY is read by the SDK client itself
AI_MODEL = os.environ.get("PULSE_AI_MODEL", "claude-3-7-sonnet-20250219")
AI_MAX_TOKENS = _env_int("PULSE_AI_MAX_TOKENS", 2000)
AI_TEMPERATURE = 0.2

# --- Reconciliation ---
# Fallback used when a month resolves to zero working days
DEFAULT_WORKING_DAYS = _env_int("PULSE_DEFAULT_WORKING_DAYS", 26)

# Severity tiers for a daily shortfall (units below prorated target)
CRITICAL_SHORTFALL = _env_int("PULSE_CRITICAL_SHORTFALL", 50)
WARNING_SHORTFALL = _env_int("PULSE_WARNING_SHORTFALL", 10)

# --- API server ---
HOST = os.environ.get("PULSE_HOST", "0.0.0.0")
PORT = _env_int("PULSE_PORT", 8000)
