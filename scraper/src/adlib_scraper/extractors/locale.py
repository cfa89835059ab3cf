"""Localized vocabulary used by the field extractors.

Each table is keyed by language code. Supporting another locale means adding
entries here; the extractors iterate over every language they find.
"""

from __future__ import annotations

from ..models import Platform

MONTHS: dict[str, dict[str, int]] = {
    "pt": {
        "janeiro": 1,
        "fevereiro": 2,
        "março": 3,
        "marco": 3,
        "abril": 4,
        "maio": 5,
        "junho": 6,
        "julho": 7,
        "agosto": 8,
        "setembro": 9,
        "outubro": 10,
        "novembro": 11,
        "dezembro": 12,
    },
    "en": {
        "january": 1,
        "february": 2,
        "march": 3,
        "april": 4,
        "may": 5,
        "june": 6,
        "july": 7,
        "august": 8,
        "september": 9,
        "sept": 9,
        "october": 10,
        "november": 11,
        "december": 12,
    },
}

START_PHRASES = {
    "pt": "Veiculação iniciada em",
    "en": "Started running on",
}

END_PHRASES = {
    "pt": ("encerrado em", "finalizado em", "término"),
    "en": ("ended on", "stopped running on"),
}

ACTIVE_TIME_LABELS = {
    "pt": "Tempo total ativo",
    "en": "Total time active",
}

LIBRARY_ID_LABELS = {
    "pt": ("Identificação da biblioteca",),
    "en": ("Library ID", "Ad Library ID"),
}

SPONSORED_LABELS = {
    "pt": "patrocinado",
    "en": "sponsored",
}

SEE_DETAILS_LABELS = {
    "pt": "ver detalhes",
    "en": "see details",
}

PLATFORMS_HEADINGS = {
    "pt": "plataformas",
    "en": "platforms",
}

INACTIVE_INDICATORS = {
    "pt": ("inativo", "encerrado", "finalizado", "pausado"),
    "en": ("inactive", "terminated", "stopped", "paused"),
}

IMPRESSION_WORDS = {
    "pt": ("impressões", "visualizações"),
    "en": ("impressions", "views"),
}

THOUSAND_WORDS = {
    "pt": ("mil",),
}

# Lower-cased prefixes of card chrome that is never advertiser copy.
METADATA_PREFIXES = {
    "pt": ("patrocinado", "veiculação", "identificação", "tempo total", "plataformas", "ver detalhes"),
    "en": ("sponsored", "started running", "library id", "ad library id", "total time", "platforms", "see details"),
}

# Delivery status badges shown as standalone lines on a card.
STATUS_LABELS = {
    "pt": ("ativo", "inativo"),
    "en": ("active", "inactive"),
}

# Page-level markers that mean the results feed rendered.
LIBRARY_MARKERS = {
    "pt": ("Biblioteca de Anúncios", "Identificação da biblioteca", "resultados"),
    "en": ("Ad Library", "Library ID", "results"),
}

# Icon sprite offsets of the platform strip (CSS mask-position -> platform).
PLATFORM_SPRITES: dict[str, Platform] = {
    "-75px -309px": Platform.FACEBOOK,
    "-75px -668px": Platform.INSTAGRAM,
    "-32px -1333px": Platform.MESSENGER,
    "-58px -1333px": Platform.AUDIENCE_NETWORK,
    "-45px -309px": Platform.WHATSAPP,
    "-84px -1333px": Platform.THREADS,
}

# Order the strip renders icons in when the sprite offsets are not recognised.
PLATFORM_DISPLAY_ORDER = (
    Platform.FACEBOOK,
    Platform.INSTAGRAM,
    Platform.MESSENGER,
    Platform.AUDIENCE_NETWORK,
)

PLATFORM_KEYWORDS = (
    ("facebook", Platform.FACEBOOK),
    ("instagram", Platform.INSTAGRAM),
    ("messenger", Platform.MESSENGER),
    ("whatsapp", Platform.WHATSAPP),
    ("threads", Platform.THREADS),
    ("audience", Platform.AUDIENCE_NETWORK),
)


def flatten(table: dict[str, tuple[str, ...]] | dict[str, str]) -> tuple[str, ...]:
    """All values of a per-language table, in language order."""

    out: list[str] = []
    for value in table.values():
        if isinstance(value, str):
            out.append(value)
        else:
            out.extend(value)
    return tuple(out)


__all__ = [
    "ACTIVE_TIME_LABELS",
    "END_PHRASES",
    "IMPRESSION_WORDS",
    "INACTIVE_INDICATORS",
    "LIBRARY_ID_LABELS",
    "LIBRARY_MARKERS",
    "METADATA_PREFIXES",
    "MONTHS",
    "PLATFORMS_HEADINGS",
    "PLATFORM_DISPLAY_ORDER",
    "PLATFORM_KEYWORDS",
    "PLATFORM_SPRITES",
    "SEE_DETAILS_LABELS",
    "SPONSORED_LABELS",
    "START_PHRASES",
    "STATUS_LABELS",
    "THOUSAND_WORDS",
    "flatten",
]
