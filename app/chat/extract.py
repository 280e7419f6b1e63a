from __future__ import annotations

import re
from typing import Any

AMOUNT_TOKEN_RE = re.compile(r"(?<![\w.])(\d+\.?\d*)\s*(eth|usdc)", re.IGNORECASE)
ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}(?![a-fA-F0-9])")
TX_HASH_RE = re.compile(r"0x[a-fA-F0-9]{64}(?![a-fA-F0-9])")
ENS_NAME_RE = re.compile(r"[a-z0-9-]+\.(?:eth|test)(?![a-z0-9-])", re.IGNORECASE)
ENS_NAME_FULL_RE = re.compile(r"^[a-z0-9-]+\.(eth|test)$", re.IGNORECASE)
ENS_LABEL_RE = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
DURATION_RE = re.compile(r"(\d+)\s*(days?|years?|months?)\b", re.IGNORECASE)

SECONDS_PER_DAY = 24 * 60 * 60
ONE_YEAR = 365 * SECONDS_PER_DAY
MIN_REGISTRATION_DURATION = 28 * SECONDS_PER_DAY

TEXT_RECORD_KEYS = (
    "avatar",
    "description",
    "display",
    "email",
    "keywords",
    "mail",
    "notice",
    "location",
    "phone",
    "url",
    "com.github",
    "com.peepeth",
    "com.linkedin",
    "com.twitter",
    "com.discord",
    "org.telegram",
)

_KEY_ALIASES = {
    "twitter": "com.twitter",
    "x": "com.twitter",
    "github": "com.github",
    "linkedin": "com.linkedin",
    "discord": "com.discord",
    "telegram": "org.telegram",
    "peepeth": "com.peepeth",
    "website": "url",
    "site": "url",
    "bio": "description",
}

_ADDRESS_KEYS = {"address", "addr", "eth", "eth address", "wallet"}

_SET_TO_RE = re.compile(
    r"(?:set|update|add|change)\s+(?:the\s+|my\s+)?([\w.]+(?:\s+address)?)(?:\s+record)?"
    r"(?:\s+(?:for|on)\s+[a-z0-9-]+\.(?:eth|test))?\s+to\s+[\"']?(.+?)[\"']?\s*$",
    re.IGNORECASE,
)
_KEY_VALUE_RE = re.compile(r"([\w.]+)\s*[:=]\s*(\"[^\"]*\"|'[^']*'|\S+)")
_TRAILING_NAME_RE = re.compile(r"\s+(?:for|on)\s+[a-z0-9-]+\.(?:eth|test)$", re.IGNORECASE)

_CONFIRM_RE = re.compile(r"\b(yes|yep|yeah|confirm(?:ed)?|go ahead|do it|proceed|sure|ok(?:ay)?)\b", re.IGNORECASE)
_REJECT_RE = re.compile(r"\b(no|nope|cancel|stop|abort|never ?mind|don'?t)\b", re.IGNORECASE)


def extract_amount_and_token(message: str) -> tuple[str, str] | None:
    match = AMOUNT_TOKEN_RE.search(message)
    if not match:
        return None
    return match.group(1), match.group(2).upper()


def extract_amounts_and_tokens(message: str) -> list[tuple[str, str]]:
    return [(m.group(1), m.group(2).upper()) for m in AMOUNT_TOKEN_RE.finditer(message)]


def extract_address(message: str) -> str | None:
    match = ADDRESS_RE.search(message)
    return match.group(0) if match else None


def extract_addresses(message: str) -> list[str]:
    return ADDRESS_RE.findall(message)


def extract_tx_hash(message: str) -> str | None:
    match = TX_HASH_RE.search(message)
    return match.group(0) if match else None


def extract_ens_name(message: str) -> str | None:
    match = ENS_NAME_RE.search(message)
    return match.group(0).lower() if match else None


def extract_ens_names(message: str) -> list[str]:
    return [m.lower() for m in ENS_NAME_RE.findall(message)]


def extract_duration(message: str) -> int | None:
    """
    Duration in seconds. Months count as 30 days, years as 365.
    """
    match = DURATION_RE.search(message)
    if not match:
        return None
    value = int(match.group(1))
    unit = match.group(2).lower()
    if unit.startswith("year"):
        return value * ONE_YEAR
    if unit.startswith("month"):
        return value * 30 * SECONDS_PER_DAY
    return value * SECONDS_PER_DAY


def normalize_record_key(key: str) -> str:
    key = key.strip().lower()
    return _KEY_ALIASES.get(key, key)


def extract_record(message: str) -> dict[str, Any] | None:
    """
    Pull one record update out of a message.

    Returns {"record_type": "text", "key", "value"} or
    {"record_type": "address", "key": "addr", "value", "coin_type": 60}.
    """
    key: str | None = None
    value: str | None = None

    match = _SET_TO_RE.search(message.strip())
    if match:
        key, value = match.group(1), match.group(2)
        value = _TRAILING_NAME_RE.sub("", value).strip()
    else:
        for kv in _KEY_VALUE_RE.finditer(message):
            candidate = kv.group(1).lower()
            if candidate in ("http", "https"):
                continue
            key, value = kv.group(1), kv.group(2).strip("\"'")
            break

    if key is not None and value:
        normalized = normalize_record_key(key)
        if normalized in _ADDRESS_KEYS:
            address = extract_address(value)
            if address is None:
                return None
            return {"record_type": "address", "key": "addr", "value": address, "coin_type": 60}
        return {"record_type": "text", "key": normalized, "value": value}

    address = extract_address(message)
    if address:
        return {"record_type": "address", "key": "addr", "value": address, "coin_type": 60}
    return None


def is_valid_ens_name(name: str) -> bool:
    return bool(name) and ENS_NAME_FULL_RE.match(name) is not None


def invalid_name_error(name: str) -> str:
    return f'Invalid format: "{name}" is not a valid ENS name (expected something like alice.eth)'


def registration_name_error(name: str) -> str | None:
    """
    Reason a name cannot be registered through the .eth controller, or None.
    """
    if not is_valid_ens_name(name):
        return invalid_name_error(name)
    if not name.lower().endswith(".eth"):
        return "Only .eth names can be registered"
    label = name.split(".")[0]
    if len(label) < 3:
        return "ENS names must be at least 3 characters long"
    if len(label) > 50:
        return "ENS names must be at most 50 characters long"
    if not ENS_LABEL_RE.match(label.lower()):
        return "ENS names may only contain lowercase letters, numbers and inner hyphens"
    return None


def is_confirmation(message: str) -> bool:
    return _CONFIRM_RE.search(message) is not None


def is_rejection(message: str) -> bool:
    return _REJECT_RE.search(message) is not None and not is_confirmation(message)


def short_address(value: str | None) -> str:
    if not value:
        return ""
    if len(value) <= 12:
        return value
    return f"{value[:6]}...{value[-4:]}"
