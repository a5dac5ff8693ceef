from __future__ import annotations

from linksender.config import DEFAULT_LINK_HOST

MESSAGE_TEMPLATE = "Gold Standard Medical Group invites you to a secure video call: {link}."
LINK_SUFFIX = "gsmg"
VANITY_ROOMS = {
    "vivian": "viviangsmg1",
}


def build_meeting_link(provider_token: str, host: str = DEFAULT_LINK_HOST) -> str:
    token = provider_token.lower()
    room = VANITY_ROOMS.get(token, f"{token}{LINK_SUFFIX}")
    return f"{host.rstrip('/')}/{room}"


def build_message_body(provider_token: str, host: str = DEFAULT_LINK_HOST) -> str:
    return MESSAGE_TEMPLATE.format(link=build_meeting_link(provider_token, host))
