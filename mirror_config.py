"""
Heart Mirror settings.

Everything comes from the environment, after ``load_dotenv()`` pulls in a
``.env`` file if there is one. The Streamlit app prefers
``st.secrets["ANTHROPIC_API_KEY"]`` and falls back to ``Config.ANTHROPIC_API_KEY``.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_HOTLINE = (
    "If you are in intense pain or thinking about hurting yourself, please reach out "
    "right now: call your local emergency number or a crisis line such as 988 (US) "
    "or 116 123 (Samaritans, UK & IE)."
)


def _int_env(name, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", name, raw)
        return default


class Config:
    # Anthropic
    ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
    QUIZ_MODEL = os.getenv("MIRROR_QUIZ_MODEL", "claude-haiku-4-5-20251001")
    ANALYSIS_MODEL = os.getenv("MIRROR_ANALYSIS_MODEL", "claude-sonnet-4-5-20250929")
    REQUEST_TIMEOUT = _int_env("MIRROR_REQUEST_TIMEOUT", 60)
    QUESTION_COUNT = _int_env("MIRROR_QUESTION_COUNT", 5)

    # History. One file on the machine running the app; each browser link
    # (?journal=<id>) gets its own key in it, so treat that link as private.
    HISTORY_PATH = os.path.expanduser(
        os.getenv("MIRROR_HISTORY_PATH", "~/.heart_mirror/history.json")
    )

    # UI
    CRISIS_HOTLINE = os.getenv("MIRROR_CRISIS_HOTLINE", DEFAULT_HOTLINE)

    # Logging
    LOG_LEVEL = os.getenv("MIRROR_LOG_LEVEL", "INFO").upper()


def setup_logging(level=None):
    """Configure root logging once. Streamlit reruns the script, so repeat calls are no-ops."""
    logging.basicConfig(
        level=getattr(logging, level or Config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
