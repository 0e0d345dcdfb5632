"""User-facing message log rendered as HTML fragments."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

_log = logging.getLogger(__name__)

TOO_LONG_NOTICE = "\n... The message is too long"
PREFERENCES_PREFIX = "#Preferences/"


def _html_escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def format_message(head, body, color="", html_escaped=True, length_limit=100000, time_text=None):
    """Render one message as an HTML line with a time, a head and a coloured body."""
    if html_escaped and "<a href" in body:
        _log.warning('The message contains "<a href", but html_escaped is enabled.')
    if html_escaped:
        # keep runs of spaces, they matter for compiler diagnostics
        head = _html_escape(head).replace(" ", "&nbsp;")
        body = _html_escape(body).replace(" ", "&nbsp;")
    if len(body) > length_limit:
        body = body[:length_limit] + TOO_LONG_NOTICE
    if time_text is None:
        time_text = datetime.now().strftime("%H:%M:%S")
    style = f"color:{color}" if color else ""
    content = "<br>" + body.replace("\n", "<br>") if "\n" in body else body
    return f'<b>[{time_text}] [{head}] </b><span style="{style}">[{content}]</span>'


class MessageLogger:
    """Collects rendered messages for display to the user."""

    def __init__(self, length_limit=100000, warn_color="green", error_color="red", on_preferences_link=None):
        self.length_limit = length_limit
        self.warn_color = warn_color
        self.error_color = error_color
        self.on_preferences_link: Callable[[str], object] | None = on_preferences_link
        self.entries: list[str] = []

    def message(self, head, body, color="", html_escaped=True):
        entry = format_message(head, body, color, html_escaped, self.length_limit)
        self.entries.append(entry)
        return entry

    def info(self, head, body, html_escaped=True):
        _log.info("<head>: [%s], <body>: [%s]", head, body)
        return self.message(head, body, "", html_escaped)

    def warn(self, head, body, html_escaped=True):
        _log.info("<head>: [%s], <body>: [%s]", head, body)
        return self.message(head, body, self.warn_color, html_escaped)

    def error(self, head, body, html_escaped=True):
        _log.info("<head>: [%s], <body>: [%s]", head, body)
        return self.message(head, body, self.error_color, html_escaped)

    def anchor_clicked(self, url):
        """Open the named preferences page for links of the form '#Preferences/<page>'."""
        if url.startswith(PREFERENCES_PREFIX) and self.on_preferences_link is not None:
            self.on_preferences_link(url[len(PREFERENCES_PREFIX):])
            return True
        return False