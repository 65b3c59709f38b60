# app/models/labels.py
"""Status enums whose stored value is a human-readable label."""

import enum
from typing import Optional


def _fold(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch.isalnum())


class LabelEnum(str, enum.Enum):
    @classmethod
    def parse(cls, value) -> Optional["LabelEnum"]:
        """Match the stored label or its compact spelling ("UnderRepair"), ignoring case."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        wanted = _fold(value)
        for member in cls:
            if _fold(member.value) == wanted:
                return member
        return None
