from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from app.chat.extract import ADDRESS_RE, AMOUNT_TOKEN_RE, TX_HASH_RE, is_confirmation

Predicate = Callable[[str], bool]


class Intent(str, Enum):
    # payment façade
    PAYMENT = "payment"
    BATCH_PAYMENT = "batch_payment"
    BALANCE = "balance"
    TX_STATUS = "tx_status"
    ENS_REGISTER = "ens_register"
    ENS_AVAILABILITY = "ens_availability"
    ENS_RESOLVE = "ens_resolve"
    # ENS façade
    REGISTER = "register"
    RENEW = "renew"
    SET_RECORD = "set_record"
    TRANSFER = "transfer"
    AVAILABILITY = "availability"
    PRICE = "price"
    RESOLVE = "resolve"
    NAME_OPTIONS = "name_options"
    REVERSE = "reverse"
    COMPLETE_REGISTRATION = "complete_registration"


@dataclass(frozen=True)
class Rule:
    name: str
    intent: Intent
    predicate: Predicate

    def matches(self, text: str) -> bool:
        return self.predicate(text)


def has_any(*words: str) -> Predicate:
    return lambda text: any(w in text for w in words)


def has_word(*words: str) -> Predicate:
    pattern = re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b")
    return lambda text: pattern.search(text) is not None


def has_all(*preds: Predicate) -> Predicate:
    return lambda text: all(p(text) for p in preds)


def either(*preds: Predicate) -> Predicate:
    return lambda text: any(p(text) for p in preds)


def matches(pattern: re.Pattern[str]) -> Predicate:
    return lambda text: pattern.search(text) is not None


_DIGIT_RE = re.compile(r"\d")
_ENS_SUFFIX = has_any(".eth")

# Order is priority: the first rule whose predicate holds decides the intent.
PAYMENT_RULES: tuple[Rule, ...] = (
    Rule(
        "batch_payment",
        Intent.BATCH_PAYMENT,
        has_all(has_any("batch", "split"), matches(AMOUNT_TOKEN_RE)),
    ),
    Rule(
        "payment",
        Intent.PAYMENT,
        has_all(
            has_any("send", "pay", "transfer", "give"),
            either(has_any("eth", "usdc"), matches(_DIGIT_RE)),
        ),
    ),
    Rule("ens_register", Intent.ENS_REGISTER, has_all(has_any("register"), _ENS_SUFFIX)),
    Rule(
        "ens_availability",
        Intent.ENS_AVAILABILITY,
        either(
            has_all(has_any("is"), has_any("available"), _ENS_SUFFIX),
            has_all(has_any("check"), _ENS_SUFFIX, has_any("available")),
        ),
    ),
    Rule(
        "ens_resolve",
        Intent.ENS_RESOLVE,
        has_all(has_any("who is", "who owns", "resolve"), _ENS_SUFFIX),
    ),
    Rule("balance", Intent.BALANCE, has_any("balance", "how much", "funds")),
    Rule("tx_status", Intent.TX_STATUS, matches(TX_HASH_RE)),
)

# Rules applied when the message names an ENS name.
ENS_NAME_RULES: tuple[Rule, ...] = (
    Rule("register", Intent.REGISTER, has_word("register", "buy", "get")),
    Rule("renew", Intent.RENEW, has_word("renew", "extend")),
    Rule("set_record", Intent.SET_RECORD, has_word("set", "update", "add", "change")),
    Rule("transfer", Intent.TRANSFER, has_word("transfer", "give", "send")),
    Rule("availability", Intent.AVAILABILITY, has_word("available", "check if", "taken")),
    Rule("price", Intent.PRICE, has_word("price", "cost", "how much")),
    Rule(
        "resolve",
        Intent.RESOLVE,
        has_word("resolve", "what", "info", "tell me about", "tell me more", "who owns", "who is", "lookup", "details"),
    ),
)

# Rules applied when no ENS name is present.
ENS_NAMELESS_RULES: tuple[Rule, ...] = (
    Rule(
        "reverse",
        Intent.REVERSE,
        has_all(matches(ADDRESS_RE), has_any("reverse", "lookup", "look up", "whose", "name for", "who is", "primary name")),
    ),
    Rule(
        "complete_registration",
        Intent.COMPLETE_REGISTRATION,
        has_any("complete", "finish", "reveal", "finalize"),
    ),
)

# Follow-ups without a name that refer back to the last ENS name discussed.
ENS_FOLLOWUP_RULES: tuple[Rule, ...] = (
    Rule("register_last", Intent.REGISTER, is_confirmation),
    Rule("price_last", Intent.PRICE, has_any("price", "cost", "how much")),
    Rule("details_last", Intent.RESOLVE, has_any("detail", "info", "more about", "tell me more", "who owns")),
    Rule("options_last", Intent.NAME_OPTIONS, has_any("option", "what can i do", "what else")),
)


def classify(message: str, rules: Sequence[Rule]) -> Intent | None:
    """
    First matching rule wins; None means no rule matched.
    """
    text = message.lower()
    for rule in rules:
        if rule.matches(text):
            return rule.intent
    return None


def classify_payment(message: str) -> Intent | None:
    return classify(message, PAYMENT_RULES)


def classify_ens(message: str, *, has_name: bool) -> Intent | None:
    if has_name:
        return classify(message, ENS_NAME_RULES) or Intent.NAME_OPTIONS
    return classify(message, ENS_NAMELESS_RULES)


def classify_ens_followup(message: str) -> Intent | None:
    return classify(message, ENS_FOLLOWUP_RULES)
