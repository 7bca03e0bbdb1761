"""ID generation and normalization utilities."""

import re
from typing import Iterable, List, Optional

_CODE_RE = re.compile(r"^(?P<registration>.+)-ABS-(?P<number>\d+)$")


def generate_abstract_code(registration_id: str, number: int) -> str:
    """Build the human-readable abstract code, e.g. ``REG123-ABS-45``."""
    if number < 1:
        raise ValueError("abstract number must be positive")
    return f"{registration_id.strip().upper()}-ABS-{number}"


def parse_abstract_number(code: str) -> Optional[int]:
    """Return the running number of an abstract code, or None if malformed."""
    match = _CODE_RE.match(code.strip())
    if not match:
        return None
    return int(match.group("number"))


def normalize_reviewer_ids(reviewer_ids: Iterable[str]) -> List[str]:
    """Strip, drop blanks and de-duplicate reviewer ids keeping first-seen order."""
    cleaned = (rid.strip() for rid in reviewer_ids if rid and rid.strip())
    return list(dict.fromkeys(cleaned))
