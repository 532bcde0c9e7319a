"""Request culture, resolved from Accept-Language and held for the current request."""
from contextvars import ContextVar, Token
from typing import Optional, List

from app.config import settings

_current_culture: ContextVar[Optional[str]] = ContextVar("current_culture", default=None)


def get_current_culture() -> str:
    return _current_culture.get() or settings.default_culture


def set_current_culture(culture: str) -> Token:
    return _current_culture.set(culture)


def reset_current_culture(token: Token) -> None:
    _current_culture.reset(token)


def get_content_culture(item) -> str:
    """Culture of a content item, falling back to the site culture"""
    return item.culture or settings.default_culture


def _parse_accept_language(header: str) -> List[str]:
    """'fr-CA,fr;q=0.8,en;q=0.5' -> ['fr-CA', 'fr', 'en'] (highest quality first)"""
    ranked = []
    for index, part in enumerate(header.split(",")):
        pieces = part.strip().split(";")
        tag = pieces[0].strip()
        if not tag or tag == "*":
            continue

        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.strip().partition("=")
            if name == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0

        if quality > 0:
            ranked.append((-quality, index, tag))

    return [tag for _, _, tag in sorted(ranked)]


def resolve_culture(accept_language: Optional[str], supported: Optional[List[str]] = None) -> str:
    """Pick the best supported culture for an Accept-Language header"""
    supported = supported or settings.supported_cultures
    by_name = {c.lower(): c for c in supported}

    for tag in _parse_accept_language(accept_language or ""):
        tag = tag.replace("_", "-").lower()

        # 1. Exact match (case-insensitive)
        if tag in by_name:
            return by_name[tag]

        # 2. Same language ('fr-BE' -> 'fr' or 'fr-FR')
        language = tag.split("-")[0]
        if language in by_name:
            return by_name[language]
        for name, culture in by_name.items():
            if name.split("-")[0] == language:
                return culture

    return settings.default_culture
