"""
Password rules and suggestions

Structural checks run locally; breach and reuse checks are the backend's
(see AuthClient.check_password_security).
"""

import re
import secrets
import string
from dataclasses import dataclass
from typing import List

MIN_LENGTH = 8
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'
_SPECIAL_RE = re.compile(r'[!@#$%^&*(),.?":{}|<>]')

# Character pool for generated passwords
_GEN_SPECIAL = "!@#$%^&*()_+-=[]{}|;:,.<>?"


@dataclass
class PasswordCheck:
    min_length: bool
    has_upper: bool
    has_lower: bool
    has_number: bool
    has_special: bool

    @property
    def is_valid(self) -> bool:
        # Special characters are reported but not required
        return self.min_length and self.has_upper and self.has_lower and self.has_number

    def failures(self) -> List[str]:
        messages = []
        if not self.min_length:
            messages.append(f"at least {MIN_LENGTH} characters")
        if not self.has_upper:
            messages.append("an uppercase letter")
        if not self.has_lower:
            messages.append("a lowercase letter")
        if not self.has_number:
            messages.append("a number")
        return messages


def validate_password(password: str) -> PasswordCheck:
    return PasswordCheck(
        min_length=len(password) >= MIN_LENGTH,
        has_upper=re.search(r"[A-Z]", password) is not None,
        has_lower=re.search(r"[a-z]", password) is not None,
        has_number=re.search(r"[0-9]", password) is not None,
        has_special=_SPECIAL_RE.search(password) is not None,
    )


def generate_password(length: int = 16) -> str:
    """Random password with at least one upper, lower, digit and symbol"""
    if length < 4:
        raise ValueError("length must be at least 4")
    pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, _GEN_SPECIAL]
    everything = "".join(pools)

    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(everything) for _ in range(length - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def generate_suggestions(count: int = 3, length: int = 16) -> List[str]:
    return [generate_password(length) for _ in range(count)]
