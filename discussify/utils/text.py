# discussify/utils/text.py
from __future__ import annotations
import re, unicodedata
from typing import Dict
from unidecode import unidecode
from better_profanity import profanity

profanity.load_censor_words()

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """'Café Lovers!' -> 'cafe-lovers'"""
    t = unidecode(unicodedata.normalize("NFKC", name or "")).lower()
    return _NON_SLUG.sub("-", t).strip("-")


def moderate_text(text: str) -> Dict:
    flagged = profanity.contains_profanity(unidecode(text or ""))
    cleaned = profanity.censor(text or "", censor_char="*")
    return {"cleaned": cleaned, "flagged": flagged}
