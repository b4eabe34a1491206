"""Folder and file name policies."""
import re
from typing import Optional

from app.core.exceptions import ValidationError

ALLOWED_NAME_PATTERN = re.compile(r"[A-Za-z0-9 ]+")


class NamePolicy:
    """
    A naming rule: non-empty, alphanumeric characters and spaces only,
    optionally capped in length.
    """

    def __init__(self, label: str, max_length: Optional[int] = None):
        self.label = label
        self.max_length = max_length

    def validate(self, name: Optional[str]) -> str:
        """
        Check a name against the policy.

        Returns the name unchanged.
        Raises ValidationError describing the first violated rule.
        """
        if not name:
            raise ValidationError(f"Invalid {self.label}: name must not be empty.")

        if self.max_length is not None and len(name) > self.max_length:
            raise ValidationError(
                f"Invalid {self.label}. Ensure it is no longer than {self.max_length} characters "
                "and contains only alphanumeric characters and spaces."
            )

        if not ALLOWED_NAME_PATTERN.fullmatch(name):
            raise ValidationError(
                f"Invalid {self.label}: only alphanumeric characters and spaces are allowed."
            )

        return name


# Creation and rename limits differ on purpose; do not merge them.
CreationNamePolicy = NamePolicy("folder name", max_length=34)
RenameNamePolicy = NamePolicy("folder name", max_length=24)
FileRenamePolicy = NamePolicy("file name")
