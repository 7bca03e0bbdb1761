"""Email template placeholder rendering."""

import re
from typing import Mapping, Optional

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def render(template: str, data: Mapping[str, Optional[str]]) -> str:
    """Replace ``{key}`` tokens with values from ``data``.

    Known keys with a missing value render as an empty string; tokens
    with no matching key are left untouched.
    """

    def _substitute(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key not in data:
            return match.group(0)
        return data[key] or ""

    return _PLACEHOLDER.sub(_substitute, template)
