"""Extract family birth data from free text (pasted notes, uploaded documents).

The text is split into blocks (blank lines, ``---`` rules or numbered entries)
and each block is scanned for a date, an optional time, a relationship keyword
and a name. Blocks without a recognisable date are skipped.
"""
from __future__ import annotations
import re
from typing import Dict, List, Optional, TypedDict


class ParsedPerson(TypedDict):
    name: str
    birthDate: str
    birthTime: str
    relationship: str


DEFAULT_NAME = "Family Member"
DEFAULT_RELATIONSHIP = "Family Member"

_MONTHS = "January|February|March|April|May|June|July|August|September|October|November|December"
MONTH_MAP: Dict[str, str] = {
    "january": "01", "february": "02", "march": "03", "april": "04",
    "may": "05", "june": "06", "july": "07", "august": "08",
    "september": "09", "october": "10", "november": "11", "december": "12",
}

BLOCK_SPLIT_RE = re.compile(r"\n\s*\n|---+|\n(?=\d+[\.\)]\s)")
MONTH_DAY_YEAR_RE = re.compile(rf"({_MONTHS})\s+(\d{{1,2}}),?\s+(\d{{4}})", re.IGNORECASE)
DAY_MONTH_YEAR_RE = re.compile(rf"(\d{{1,2}})\s+({_MONTHS}),?\s+(\d{{4}})", re.IGNORECASE)
ISO_DATE_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
SLASH_DATE_RE = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})")
TIME_RE = re.compile(r"(\d{1,2}):(\d{2})\s*(am|pm)?", re.IGNORECASE)
NUMBERING_RE = re.compile(r"^\d+[\.\)]\s*")

# Keyword match is case-insensitive; the captured name must start with a capital.
LABELLED_NAME_RE = re.compile(r"(?i:name|person|individual)\s*[:=]\s*([A-Z][a-zA-Z\s]+?)(?:\s*[-,\(]|$)")
PLAIN_NAME_RE = re.compile(r"^[A-Z][a-zA-Z\s]+$")
RELATION_NAME_RE = re.compile(r"(?i:(?:my\s+)?(?:mother|father|brother|sister|partner|spouse))\s*[-:,]?\s*([A-Z][a-zA-Z]+)")

# Checked in order; the first category with a matching keyword wins.
RELATIONSHIP_KEYWORDS: Dict[str, List[str]] = {
    "Mother": ["mother", "mom", "mum", "mama"],
    "Father": ["father", "dad", "papa", "daddy"],
    "Sibling": ["brother", "sister", "sibling", "twin"],
    "Partner": ["partner", "spouse", "husband", "wife", "boyfriend", "girlfriend"],
    "Child": ["son", "daughter", "child", "children", "kid", "grandson", "granddaughter", "grandchild", "grandchildren", "grandkid"],
    "Grandparent": ["grandmother", "grandfather", "grandma", "grandpa", "nana", "grandparent"],
    "Aunt/Uncle": ["aunt", "uncle", "auntie"],
    "Cousin": ["cousin"],
}


# Whole words only. A keyword may carry step-/half-/great- prefixes and a
# plural ending; possessives ("mom's") end the word on the apostrophe.
# "grandmother" is not a "mother" and "person" is not a "son".
_RELATIONSHIP_RES = {
    rel: re.compile(r"\b(?:step-?|half-?|great-?)*(?:" + "|".join(map(re.escape, kws)) + r")(?:s|es)?\b")
    for rel, kws in RELATIONSHIP_KEYWORDS.items()
}


def detect_relationship(text: str) -> str:
    lower = text.lower()
    for rel, pattern in _RELATIONSHIP_RES.items():
        if pattern.search(lower):
            return rel
    return DEFAULT_RELATIONSHIP


def parse_date(text: str) -> Optional[str]:
    """First recognisable date in ``text`` as YYYY-MM-DD, or None.

    Precedence: "March 3, 1960", "3 March 1960", "1960-3-3", then US "03/03/1960".
    """
    m = MONTH_DAY_YEAR_RE.search(text)
    if m:
        return f"{m.group(3)}-{MONTH_MAP[m.group(1).lower()]}-{m.group(2).zfill(2)}"

    m = DAY_MONTH_YEAR_RE.search(text)
    if m:
        return f"{m.group(3)}-{MONTH_MAP[m.group(2).lower()]}-{m.group(1).zfill(2)}"

    m = ISO_DATE_RE.search(text)
    if m:
        return f"{m.group(1)}-{m.group(2).zfill(2)}-{m.group(3).zfill(2)}"

    m = SLASH_DATE_RE.search(text)
    if m:
        month, day, year = m.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    return None


def parse_time(text: str) -> str:
    """First H:MM time (optionally am/pm) as 24h HH:MM; '' when absent."""
    m = TIME_RE.search(text)
    if not m:
        return ""
    hours = int(m.group(1))
    minutes = m.group(2)
    ampm = (m.group(3) or "").lower()
    if ampm == "pm" and hours < 12:
        hours += 12
    if ampm == "am" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes}"


def _resolve_name(lines: List[str], full_block: str) -> str:
    m = LABELLED_NAME_RE.search(full_block)
    if m:
        return m.group(1).strip()
    first_line = NUMBERING_RE.sub("", lines[0])
    if PLAIN_NAME_RE.match(first_line) and len(first_line) < 40:
        return first_line
    m = RELATION_NAME_RE.search(full_block)
    return m.group(1) if m else DEFAULT_NAME


def split_blocks(text: str) -> List[str]:
    return [b for b in BLOCK_SPLIT_RE.split(text or "") if b.strip()]


def parse_document_text(text: str) -> List[ParsedPerson]:
    results: List[ParsedPerson] = []
    for block in split_blocks(text):
        lines = [ln.strip() for ln in block.strip().split("\n") if ln.strip()]
        if not lines:
            continue
        full_block = " ".join(lines)
        date = parse_date(full_block)
        if not date:
            continue
        results.append({
            "name": _resolve_name(lines, full_block),
            "birthDate": date,
            "birthTime": parse_time(full_block),
            "relationship": detect_relationship(full_block),
        })
    return results
