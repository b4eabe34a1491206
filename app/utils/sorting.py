import re
from typing import List, Union

_DIGITS = re.compile(r"(\d+)")


def natural_sort_key(name: str) -> List[Union[int, str]]:
    """Case-insensitive key that orders "Area 2" before "Area 10"."""
    return [int(part) if part.isdigit() else part.lower() for part in _DIGITS.split(name)]
