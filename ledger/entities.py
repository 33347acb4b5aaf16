"""Rule-based extraction of people, places and trade goods from ledger text.

The entries are Early New High German with Latin formulae, so a statistical
NER model trained on modern text does little better than these patterns. Any
replacement only has to honour :func:`extract_entities`'s return shape.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Tuple

from pydantic import BaseModel

_UPPER = "A-ZÄÖÜ"
_LOWER = "a-zäöüß"
_WORD = rf"[{_UPPER}][{_LOWER}]+"

NAME_PARTICLES: Tuple[str, ...] = ("von", "vom", "zu", "de")
PLACE_PREPOSITIONS: Tuple[str, ...] = ("zu", "von", "aus", "in", "gen", "bei", "am")

# Capitalised words that open entries or name calendar days, months or measures.
STOPWORDS = frozenset(
    {
        # formulae
        "Item", "Anno", "Summa", "Dominus", "Domini", "Herr", "Recepimus", "Dabimus",
        "Einnahmen", "Ausgaben", "Per", "Pro", "Idem", "Eodem", "Datum", "Actum",
        "Dem", "Den", "Der", "Des", "Die", "Das", "Ein", "Eine", "Und",
        # weekdays
        "Sonntag", "Montag", "Dienstag", "Mittwoch", "Pfinztag", "Donnerstag",
        "Freitag", "Samstag", "Sambstag", "Dominica", "Feria",
        # months, Latin and German
        "Januarii", "Januarius", "Februarii", "Februarius", "Martii", "Martius",
        "Aprilis", "Maii", "Maius", "Junii", "Junius", "Julii", "Julius", "Augusti",
        "Augustus", "Septembris", "October", "Octobris", "Novembris", "Decembris",
        "Jenner", "Hornung", "Merz", "April", "Mai", "Juni", "Juli", "August",
        "September", "Oktober", "November", "Dezember",
        # measures
        "Schaff", "Metzen", "Emer", "Eimer", "Pfund", "Tagwerk", "Fuder", "Zentner",
    }
)

KNOWN_PLACES: Tuple[str, ...] = (
    "Aldersbach", "Aitenpach", "Passau", "Vilshofen", "Osterhofen", "Ortenburg",
    "Landshut", "Straubing", "Regensburg", "Pfarrkirchen", "Eggenfelden",
    "Braunau", "Schärding", "Burghausen", "Wien", "Salzburg", "Linz", "München",
)

# Canonical spelling first; variants map to it.
COMMODITIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Korn", ("korn",)),
    ("Weizen", ("weizen", "waitz", "waiz")),
    ("Gerste", ("gerste", "gersten")),
    ("Hafer", ("hafer", "habern", "haber")),
    ("Roggen", ("roggen", "rocken")),
    ("Wein", ("wein",)),
    ("Bier", ("bier",)),
    ("Holz", ("holz",)),
    ("Salz", ("salz",)),
    ("Fleisch", ("fleisch",)),
    ("Käse", ("käse", "kaes")),
    ("Schmalz", ("schmalz",)),
    ("Wachs", ("wachs",)),
    ("Tuch", ("tuch",)),
    ("Fisch", ("fisch",)),
    ("Eisen", ("eisen",)),
    ("Ochsen", ("ochs",)),
)

_NAME_RUN = re.compile(
    rf"(?<!\w){_WORD}(?:\s+(?:(?:{'|'.join(NAME_PARTICLES)})\s+)?{_WORD})*(?!\w)"
)
# A capitalised word after the candidate means a personal name such as "von Hans Mair".
_PLACE_AFTER_PREPOSITION = re.compile(
    rf"(?<!\w)(?:{'|'.join(PLACE_PREPOSITIONS)})\s+({_WORD})(?!\w)(?!\s+{_WORD})"
)
_GAZETTEER = re.compile(rf"(?<!\w)({'|'.join(KNOWN_PLACES)})(?!\w)")
_COMMODITY_WORDS = frozenset(v for _, variants in COMMODITIES for v in variants)
_COMMODITY_PATTERNS = tuple(
    (canonical, re.compile(rf"(?<!\w)(?:{'|'.join(variants)})", re.IGNORECASE))
    for canonical, variants in COMMODITIES
)


class ExtractedEntities(BaseModel):
    people: List[str] = []
    places: List[str] = []
    commodities: List[str] = []


def _dedupe(found: Iterable[Tuple[int, str]]) -> List[str]:
    ordered = sorted(found, key=lambda item: item[0])
    return list(dict.fromkeys(name for _, name in ordered))


def _split_name_run(run: str, start: int) -> List[Tuple[int, str]]:
    """Break a capitalised run at stopwords; drop dangling particles."""
    names: List[Tuple[int, str]] = []
    current: List[str] = []
    current_start = start
    offset = start

    def flush() -> None:
        while current and current[-1] in NAME_PARTICLES:
            current.pop()
        name = " ".join(current)
        if len(name) > 2 and name not in KNOWN_PLACES:
            names.append((current_start, name))
        current.clear()

    for match in re.finditer(r"\S+", run):
        word = match.group()
        offset = start + match.start()
        if word in STOPWORDS or word.casefold() in _COMMODITY_WORDS:
            flush()
            continue
        if not current:
            if word in NAME_PARTICLES:
                continue
            current_start = offset
        current.append(word)
    flush()
    return names


def extract_people(text: str) -> List[str]:
    found: List[Tuple[int, str]] = []
    for match in _NAME_RUN.finditer(text):
        found.extend(_split_name_run(match.group(), match.start()))
    return _dedupe(found)


def extract_places(text: str) -> List[str]:
    found: List[Tuple[int, str]] = []
    for match in _PLACE_AFTER_PREPOSITION.finditer(text):
        name = match.group(1)
        if name not in STOPWORDS:
            found.append((match.start(1), name))
    for match in _GAZETTEER.finditer(text):
        found.append((match.start(1), match.group(1)))
    return _dedupe(found)


def extract_commodities(text: str) -> List[str]:
    found: List[Tuple[int, str]] = []
    for canonical, pattern in _COMMODITY_PATTERNS:
        match = pattern.search(text)
        if match:
            found.append((match.start(), canonical))
    return _dedupe(found)


def extract_entities(text: str) -> ExtractedEntities:
    """Extract deduplicated people, places and commodities from ``text``."""
    if not text:
        return ExtractedEntities()
    return ExtractedEntities(
        people=extract_people(text),
        places=extract_places(text),
        commodities=extract_commodities(text),
    )
