import re
from typing import Iterable, List, Optional


_PHONE_NOISE = re.compile(r"[\s\-\+]")


def clean_phone_number(value: Optional[str]) -> str:
    """Strip spaces, dashes and plus signs the chat channel leaves in numbers"""
    if value is None:
        return ""
    return _PHONE_NOISE.sub("", str(value))


def unique_phone_numbers(values: Iterable[Optional[str]]) -> List[str]:
    """Cleaned, non-empty phone numbers in first-seen order without repeats"""
    cleaned = (clean_phone_number(value) for value in values)
    return list(dict.fromkeys(number for number in cleaned if number))
