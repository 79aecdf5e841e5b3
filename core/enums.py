"""String enums that can be parsed from untrusted input."""

from enum import Enum

from core.errors import UnknownEnumValue


class ParseableEnum(str, Enum):
    """``str`` enum with a case-insensitive ``parse`` for request values."""

    @classmethod
    def parse(cls, value: str):
        """Parse a member from its value or name, ignoring case.

        Raises:
            UnknownEnumValue: If no member matches; lists the valid values.
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text or member.name.lower() == text:
                return member
        raise UnknownEnumValue(cls.__name__, value, [m.value for m in cls])

    def __str__(self) -> str:
        return self.value
