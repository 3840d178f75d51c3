"""Derive a geocodable place name from a German club (organizer) name.

Used only when a tournament row carries no explicit venue. Club names mix the
town with legal forms, club-type abbreviations and club colours
("TC Blau-Weiß Heidelberger e.V."); this strips the noise and picks the word
that looks most like a town, falling back to the organizer string itself so the
geocoder always receives a non-empty query.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern

# Organizer substrings whose literal extraction would yield a district or nothing useful.
SPECIAL_CASES = (
    ("Post Südstadt Karlsruhe", "Karlsruhe"),
    ("Heidelberger Tennis-Club", "Heidelberg"),
    ("Eppelheimer Tennis-Club", "Eppelheim"),
    ("Karbener Sportverein", "Karben"),
    ("Unterbarmer Tennisclub", "Wuppertal"),
    ("Ratinger Tennisclub", "Ratingen"),
    ("Lohausener Sport-Verein", "Düsseldorf"),
)

LEGAL_FORMS = (
    "e.V.", "e. V.", "e.v.",
    ", TA", " TA", "- TA", " , TA",
    "Abt. Tennis", "- Abt. Tennis", "Abt.",
    "von 1845", "von 1890", "1890", "1845", "1911", "1920", "1920/75", "1975", "1970",
    "1974", "1923", "1897", "1896", "08/29", "05", "50",
    "zu",
)

CLUB_TYPES = (
    "Turnverein", "Turn- u. Sportverein", "Tennisverein", "Tennis-Club", "Tennisclub", "Tennisklub",
    "Sportverein", "Sport-Verein", "Sportvereinigung", "Sportgemeinschaft", "Tennisgemeinschaft",
    "TC", "TK", "TG", "TV", "SG", "SV", "SKV", "FC", "ATV", "SuS", "TSG", "SC", "SF", "TSC",
    "Tennis", "DJK", "Post", "Tura", "Germania", "Bezirk", "Optimus", "Olympia", "Nicolai", "Club",
)

CLUB_COLORS = (
    "Rot-Weiß", "Blau-Weiß", "Grün-Weiß", "Grün-Weiss", "Grün-Gelb", "Grün-Weiß-Rot",
    "Blau-Gelb", "Schwarz-Weiß", "Grün Weiß", "Grün Weiss", "Weiss-Rot",
    "GW", "BW", "RW", "SW",
)

CITY_SUFFIXES = (
    "heim", "hausen", "feld", "berg", "burg", "furt", "stadt", "dorf", "bach", "tal", "au",
    "weiler", "kirchen", "ingen", "ungen", "stein", "bronn", "brunn", "baden", "bad",
)

KNOWN_PLACES = (
    "Leipzig", "Erfurt", "Pinnow", "Apolda", "Speyer", "Konstanz", "Lorsch", "Karlsruhe",
    "Duisburg", "Wesel", "Dümpten", "Eigen", "Büderich", "Wixhausen", "Neckarau", "Denzlingen",
    "Niederursel", "Blumberg", "Ratingen", "Büttelborn", "Ladenburg", "Offenthal", "Niefern",
    "Öschelbronn", "Buchen", "Mönchengladbach", "Unterfeldhaus", "Friedrichsfeld", "Bermatingen",
    "Mülheim", "Heißen", "Mörfelden", "Lußheim", "Großsachsen", "Wössingen", "Mühlhausen",
    "Dauchingen", "Schriesheim", "Eppelheim", "Durmersheim", "Wiesental", "Grenzach", "Malsch",
    "Eggenstein", "Mackenbach", "Dreieichenhain", "Mehrhoog", "Heidelberg", "Kassel", "Nordshausen",
    "Karben", "Wuppertal", "Düsseldorf",
)

COMMON_CLUB_WORDS = frozenset(
    w.lower()
    for w in (
        "Tennis", "Club", "Verein", "Sport", "Turn", "Klub", "Gemeinschaft", "Sportverein",
        "Tennisverein", "Sportgemeinschaft", "Tennisgemeinschaft", "Turnverein", "Sportvereinigung",
        "Optimus", "Olympia", "Germania", "Nicolai", "Post", "Tura", "Bezirk", "Karbener",
        "Heidelberger", "Ratinger", "Lohausener", "Unterbarmer", "Eppelheimer",
        "Südstadt",
    )
)

ADJECTIVE_SUFFIX = "er"


def _token_pattern(tokens: Iterable[str]) -> Pattern[str]:
    parts: List[str] = []
    # longest first so "Grün-Weiß-Rot" wins over "Grün-Weiß"
    for token in sorted(set(tokens), key=len, reverse=True):
        piece = re.escape(token)
        if token[0].isalnum():
            piece = r"(?<!\w)" + piece
        if token[-1].isalnum():
            piece = piece + r"(?!\w)"
        parts.append(piece)
    return re.compile("|".join(parts))


_NOISE = _token_pattern(LEGAL_FORMS + CLUB_TYPES + CLUB_COLORS)


def is_capitalized(word: str) -> bool:
    return bool(word) and word[0].isupper()


def is_common_club_word(word: str) -> bool:
    return word.lower() in COMMON_CLUB_WORDS


def is_likely_city(word: str) -> bool:
    """Capitalized word with a German place-name ending or containing a known place name."""
    if len(word) < 3 or not is_capitalized(word):
        return False
    lowered = word.lower()
    if lowered.endswith(CITY_SUFFIXES):
        return True
    return any(place.lower() in lowered for place in KNOWN_PLACES)


def strip_noise(organizer: str) -> str:
    return " ".join(_NOISE.sub(" ", organizer).split())


def _special_case(organizer: str) -> Optional[str]:
    for needle, city in SPECIAL_CASES:
        if needle in organizer:
            return city
    return None


def _from_adjective(organizer: str) -> Optional[str]:
    # Heidelberger -> Heidelberg, Ratinger -> Ratingen, Eppelheimer -> Eppelheim
    for word in organizer.split():
        if not word.endswith(ADJECTIVE_SUFFIX) or len(word) <= 4:
            continue
        stem = word[: -len(ADJECTIVE_SUFFIX)]
        for candidate in (stem, stem + "en", stem + "m"):
            if is_likely_city(candidate):
                return candidate
    return None


def _from_compounds(organizer: str) -> Optional[str]:
    if "-" in organizer:
        for part in organizer.split("-"):
            part = part.strip()
            if is_likely_city(part):
                return part
    words = organizer.split()
    if len(words) >= 2:
        for idx, word in enumerate(words):
            if is_likely_city(word):
                return word
            if idx < len(words) - 1 and is_likely_city(word + words[idx + 1]):
                return word + words[idx + 1]
    return None


def _from_remaining_words(cleaned: str, organizer: str) -> Optional[str]:
    words = cleaned.split()
    if not words:
        return None
    for word in words:
        if is_likely_city(word):
            return word
    compound = _from_compounds(organizer)
    if compound:
        return compound
    best = ""
    for word in words:
        if len(word) >= 4 and is_capitalized(word) and not is_common_club_word(word) and len(word) > len(best):
            best = word
    if best:
        return best
    for word in words:
        if len(word) >= 3 and is_capitalized(word) and not is_common_club_word(word):
            return word
    return None


def guess_place(organizer: str) -> str:
    """Best-effort place name for ``organizer``; never empty for a non-empty organizer."""
    return (
        _special_case(organizer)
        or _from_adjective(organizer)
        or _from_remaining_words(strip_noise(organizer), organizer)
        or organizer
    )
