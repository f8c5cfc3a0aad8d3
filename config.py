# config.py

#============================================================#
#                          Teamward                          #
#============================================================#
# Created     : 2026-10-18                                   #
# Version     : V1.0.0                                       #
#------------------------------------------------------------#
# Purpose     : Settings lookup (Streamlit secrets -> env ->  #
#               default) and logging setup.                  #
#============================================================#

import logging
import os

DEFAULT_DATABASE_URL = "sqlite:///teamward.db"
DEFAULT_AI_MODEL = "claude-sonnet-4-20250514"

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _secrets():
    try:
        import streamlit as st
        return getattr(st, "secrets", {})
    except Exception:
        return {}


def get_setting(name: str, default=None):
    """Read a setting from Streamlit secrets, then the environment."""
    try:
        value = _secrets().get(name)
    except Exception:
        # no secrets.toml outside `streamlit run`
        value = None
    return value or os.getenv(name) or default


def database_url() -> str:
    return get_setting("DATABASE_URL", DEFAULT_DATABASE_URL)


def ai_model() -> str:
    return get_setting("TEAMWARD_AI_MODEL", DEFAULT_AI_MODEL)


def configure_logging(level: str | None = None) -> None:
    level = (level or get_setting("TEAMWARD_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=_LOG_FORMAT)
