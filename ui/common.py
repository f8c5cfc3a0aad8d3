# ui/common.py
import logging

import streamlit as st
from sqlalchemy.exc import SQLAlchemyError

from utils.permissions import PermissionDenied

logger = logging.getLogger(__name__)


def force_rerun():
    fn = getattr(st, "rerun", None) or getattr(st, "experimental_rerun", None)
    if fn:
        fn()


def user_label(user) -> str:
    if user is None:
        return "—"
    if isinstance(user, dict):
        return user.get("full_name") or user.get("email") or user.get("id")
    return user.full_name or user.email or user.id


def run_action(fn, *args, success: str | None = None, rerun: bool = True, **kwargs):
    """Run a db mutation; report failures as a notification instead of crashing the page."""
    try:
        result = fn(*args, **kwargs)
    except PermissionDenied as e:
        st.error(str(e))
        return None
    except ValueError as e:
        st.warning(str(e))
        return None
    except SQLAlchemyError as e:
        logger.exception("database error in %s", getattr(fn, "__name__", fn))
        st.error(f"Database error: {e.__class__.__name__}")
        return None
    if success:
        st.success(success)
    if rerun:
        force_rerun()
    return result
