"""services/share_links.py - Building share links and pulling tokens back out of them."""

import re
from typing import Optional
from urllib.parse import parse_qs, quote, urlparse

from config import FRONTEND_BASE_URL, TELEGRAM_BOT_USERNAME, TOKEN_MIN_LENGTH
from schemas.sessions import Permission, SharedSession, ShareLinks

START_PARAM_PREFIX = "share_"

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def build_view_link(token: str, base_url: str = FRONTEND_BASE_URL) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}token={quote(token)}"


def build_edit_link(token: str, bot_username: str = TELEGRAM_BOT_USERNAME) -> str:
    return f"https://t.me/{bot_username}?start={START_PARAM_PREFIX}{quote(token)}"


def build_share_links(session: SharedSession) -> ShareLinks:
    web_url = build_view_link(session.token)
    if session.permissions == Permission.EDIT:
        mini_app_url = build_edit_link(session.token)
        return ShareLinks(url=mini_app_url, webUrl=web_url, miniAppUrl=mini_app_url)
    return ShareLinks(url=web_url, webUrl=web_url)


def extract_token(raw: Optional[str]) -> Optional[str]:
    """
    Accepts whatever a guest pastes or a platform passes along:
    a bare token, a link with ?token=, a t.me link with ?start=share_<token>,
    or the start parameter on its own. None when nothing token-like is found.
    """
    value = (raw or "").strip()
    if not value:
        return None

    if "://" in value or "?" in value or "=" in value:
        query = urlparse(value).query if "://" in value else value.split("?", 1)[-1]
        params = parse_qs(query)
        for key in ("token", "start", "startapp", "tgWebAppStartParam"):
            if params.get(key):
                return extract_token(params[key][0])
        return None

    if value.startswith(START_PARAM_PREFIX):
        value = value[len(START_PARAM_PREFIX):]

    if len(value) < TOKEN_MIN_LENGTH or not _TOKEN_RE.match(value):
        return None
    return value
