"""Topic helpers to add an optional robot namespace."""

from __future__ import annotations

from typing import Optional


def namespaced(topic: str, *, namespace: Optional[str] = None, absolute: bool = True) -> str:
    """Return a topic or action name with an optional namespace prefix.

    Leading slashes are stripped from ``topic`` and the namespace is cleaned
    of surrounding slashes before joining.
    """

    clean_topic = (topic or "").strip().lstrip("/")
    if not clean_topic:
        return "/" if absolute else ""

    ns = (namespace or "").strip().strip("/")
    if ns:
        clean_topic = f"{ns}/{clean_topic}"

    return f"/{clean_topic}" if absolute else clean_topic


__all__ = ["namespaced"]
