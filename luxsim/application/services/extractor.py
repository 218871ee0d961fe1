"""Natural-language parameter extraction.

Turns a free-text chat message into a partial scenario update plus one
human-readable description per recognised field.

Rules are organised as an ordered table of ``FieldRule`` groups. Each group
claims one or more scenario fields and holds pure pattern rules
``(ParseContext) -> Extraction | None`` combined by ``first_match`` (or
``merge_all`` for groups whose rules set independent fields). A group is
skipped once any of its fields has been extracted by an earlier group, so a
looser pattern never overwrites a more specific one. Override groups
(all-cash) ignore that guard.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from luxsim.core.constants import CHAT_REGION_KEYWORDS, FIELD_BOUNDS
from luxsim.core.financial import round_to_step
from luxsim.core.logging import get_logger
from luxsim.application.services.narrative import format_number, format_usd
from luxsim.application.services.scenario import match_region
from luxsim.domain.models.chat import ExtractionResult

log = get_logger(__name__)

MIN_PROPERTY_VALUE = 100_000
MAX_INTEREST_RATE = 20.0
MAX_TAX_RATE_PCT = 5.0
MAX_HEADCOUNT = 50
MAX_GENERIC_YEARS = 50

DOWN_PAYMENT_LTV_STEP = 5
RENOVATION_ESTIMATE_RATIO = 0.04
RENOVATION_ESTIMATE_STEP = 25_000
RENOVATION_ESTIMATE_FLOOR = 100_000
SERVICE_DEFAULT_STEP = 5_000
SERVICE_DEFAULT_FLOOR = 15_000


# --- Shared parsers ---

_MONEY_PATTERNS: tuple[tuple[re.Pattern[str], float], ...] = (
    (re.compile(r"\$?\s*([\d,.]+)\s*[Mm](?:illion)?"), 1_000_000),
    (re.compile(r"\$?\s*([\d,.]+)\s*[Bb](?:illion)?"), 1_000_000_000),
    (re.compile(r"\$?\s*([\d,.]+)\s*[Kk]"), 1_000),
    (re.compile(r"\$\s*([\d,]+(?:\.\d+)?)"), 1),
    (re.compile(r"([\d,]+(?:\.\d+)?)\s*(?:dollars?)", re.IGNORECASE), 1),
    (re.compile(r"(\d[\d,]*(?:\.\d+)?)"), 1),
)

# Integer parts longer than this are rejected, never converted
MAX_NUMBER_DIGITS = 15

_LEADING_NUMBER_RE = re.compile(r"\s*(\d+(?:\.\d+)?|\.\d+)")
_LEADING_INT_RE = re.compile(r"\s*(\d+)")
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?|\.\d+)\s*(?:%|percent\b)", re.IGNORECASE)
_YEARS_RE = re.compile(r"(\d+)\s*(?:years?|yrs?)\b", re.IGNORECASE)


def _to_float(raw: str) -> float | None:
    m = _LEADING_NUMBER_RE.match(raw.replace(",", ""))
    if m is None or len(m.group(1).split(".")[0]) > MAX_NUMBER_DIGITS:
        return None
    return float(m.group(1))


def _to_int(raw: str) -> int | None:
    m = _LEADING_INT_RE.match(raw)
    if m is None or len(m.group(1)) > MAX_NUMBER_DIGITS:
        return None
    return int(m.group(1))


def parse_money(text: str) -> float | None:
    """Dollar amount in ``text``: $14.5M, 14.5 million, $500K, $500,000, 2500000, 250000 dollars.

    Patterns are tried in a fixed order (millions, billions, thousands,
    dollars, then a plain number); the first that matches anywhere in the
    text wins.
    """
    for pattern, multiplier in _MONEY_PATTERNS:
        m = pattern.search(text)
        if m:
            number = _to_float(m.group(1))
            return number * multiplier if number is not None else None
    return None


def parse_percent(text: str) -> float | None:
    """First ``NN%`` or ``NN percent`` in ``text``."""
    m = _PERCENT_RE.search(text)
    return _to_float(m.group(1)) if m else None


def parse_years(text: str) -> int | None:
    """First ``N years`` / ``N yrs`` in ``text``."""
    m = _YEARS_RE.search(text)
    return _to_int(m.group(1)) if m else None


def _in_bounds(field_name: str, value: float) -> bool:
    low, high = FIELD_BOUNDS.get(field_name, (-math.inf, math.inf))
    return low <= value <= high


def _round_cents(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


# --- Rule machinery ---


@dataclass(frozen=True)
class ParseContext:
    """Everything a rule may look at. Rules never mutate it."""

    text: str
    current_property_value: float
    extracted: Mapping[str, Any] = field(default_factory=dict)

    @property
    def lower(self) -> str:
        return self.text.lower()

    @property
    def property_value(self) -> float:
        """Property value stated in this message, else the scenario's."""
        return self.extracted.get("property_value") or self.current_property_value


@dataclass(frozen=True)
class Extraction:
    params: dict[str, Any]
    descriptions: tuple[str, ...] = ()

    @classmethod
    def single(cls, field_name: str, value: Any, description: str) -> Extraction:
        return cls({field_name: value}, (description,))


Rule = Callable[[ParseContext], "Extraction | None"]
Combinator = Callable[[Sequence[Rule], ParseContext], "Extraction | None"]


def first_match(rules: Sequence[Rule], ctx: ParseContext) -> Extraction | None:
    """Result of the first rule that matches."""
    for rule in rules:
        hit = rule(ctx)
        if hit is not None:
            return hit
    return None


def merge_all(rules: Sequence[Rule], ctx: ParseContext) -> Extraction | None:
    """Run every rule; a field claimed by an earlier rule is not overwritten."""
    params: dict[str, Any] = {}
    descriptions: list[str] = []
    for rule in rules:
        hit = rule(ctx)
        if hit is None or any(k in params for k in hit.params):
            continue
        params.update(hit.params)
        descriptions.extend(hit.descriptions)
    return Extraction(params, tuple(descriptions)) if params else None


@dataclass(frozen=True)
class FieldRule:
    """A group of rules claiming ``fields``."""

    name: str
    fields: tuple[str, ...]
    rules: tuple[Rule, ...]
    combine: Combinator = first_match
    override: bool = False

    def applies(self, extracted: Mapping[str, Any]) -> bool:
        return self.override or not any(f in extracted for f in self.fields)

    def evaluate(self, ctx: ParseContext) -> Extraction | None:
        return self.combine(self.rules, ctx)


def pattern_rule(
    pattern: str,
    field_name: str,
    convert: Callable[[str, ParseContext], Any],
    describe: Callable[[Any], str],
    *,
    on_lower: bool = False,
) -> Rule:
    """Rule that searches one regex and converts its first group.

    ``convert`` returns None to reject the match.
    """
    regex = re.compile(pattern, re.IGNORECASE)

    def rule(ctx: ParseContext) -> Extraction | None:
        m = regex.search(ctx.lower if on_lower else ctx.text)
        if m is None:
            return None
        value = convert(m.group(1) if m.groups() else m.group(0), ctx)
        if value is None:
            return None
        return Extraction.single(field_name, value, describe(value))

    rule.__name__ = f"{field_name}_rule"
    return rule


def flag_rule(pattern: str, field_name: str, value: Any, description: str) -> Rule:
    """Rule that sets a fixed value when ``pattern`` is found."""
    regex = re.compile(pattern, re.IGNORECASE)

    def rule(ctx: ParseContext) -> Extraction | None:
        if regex.search(ctx.text) is None:
            return None
        return Extraction.single(field_name, value, description)

    rule.__name__ = f"{field_name}_flag"
    return rule


# --- Converters ---


def _money(raw: str, ctx: ParseContext) -> float | None:
    return parse_money(raw) or None


def _monthly_money(raw: str, ctx: ParseContext) -> float | None:
    value = parse_money(raw)
    return value * 12 if value else None


def _price(raw: str, ctx: ParseContext) -> float | None:
    value = parse_money(raw)
    return value if value and value >= MIN_PROPERTY_VALUE else None


def _interest_rate(raw: str, ctx: ParseContext) -> float | None:
    rate = _to_float(raw)
    return rate if rate is not None and 0 < rate <= MAX_INTEREST_RATE else None


def _bounded_percent(field_name: str) -> Callable[[str, ParseContext], float | None]:
    def convert(raw: str, ctx: ParseContext) -> float | None:
        value = _to_float(raw)
        return value if value is not None and _in_bounds(field_name, value) else None

    return convert


def _bounded_years(field_name: str) -> Callable[[str, ParseContext], int | None]:
    def convert(raw: str, ctx: ParseContext) -> int | None:
        years = _to_int(raw)
        return years if years is not None and _in_bounds(field_name, years) else None

    return convert


def _headcount(raw: str, ctx: ParseContext) -> int | None:
    count = _to_int(raw)
    return count if count is not None and 0 <= count <= MAX_HEADCOUNT else None


# --- Patterns ---

_MONEY = r"(\$?\s*[\d,.]+(?![\d,.])\s*[MmKk]?)(?!\s*%)"
_PRICE_MONEY = r"(\$?\s*[\d,.]+\s*[MmKkBb]?(?:illion)?)"
_DWELLING = r"(?:home|house|property|villa|condo|apartment|estate|place)"
# Keeps "vacancy at 10%" or "growth rate 3%" from reading as an interest rate
_NOT_OTHER_RATE = r"(?<!vacancy\s)(?<!growth\s)(?<!tax\s)(?<!appreciation\s)(?<!ltv\s)(?<!leverage\s)"
# "X rate at N%" is left to the named-rate pattern, so the bare "at N%" form skips it
_NOT_AFTER_RATE = rf"{_NOT_OTHER_RATE}(?<!rate\s)(?<!ratio\s)"

PRICE_PATTERNS = (
    rf"(?:listed|listing|asking|ask)\s*(?:price|at|for)?\s*(?:is|of|at|:)?\s*{_PRICE_MONEY}",
    rf"(?:buy|purchase|acquire|get)\s+(?:a\s+)?{_PRICE_MONEY}\s*{_DWELLING}?",
    rf"{_DWELLING}\s+(?:worth|valued?\s+at|priced?\s+at|for|at|of)\s+{_PRICE_MONEY}",
    rf"(\$\s*[\d,.]+\s*[MmKkBb]?(?:illion)?)\s*{_DWELLING}",
    rf"property\s*(?:value|price)\s*(?:to|at|of|=|:)?\s*{_PRICE_MONEY}",
    rf"(?:value|price|worth|(?<!closing\s)cost|priced)\s*(?:is|of|at|=|:)\s*{_PRICE_MONEY}",
    rf"(?:it'?s|its|the\s+price\s+is|it\s+(?:is|was)|goes\s+for|selling\s+(?:for|at))\s*{_PRICE_MONEY}",
)

PERCENT_DOWN_PATTERNS = (
    r"(\d+(?:\.\d+)?)\s*(?:%|percent)\s+down",
    r"down\s*payment\s*(?:of|is|=|:)?\s*(\d+(?:\.\d+)?)\s*(?:%|percent)",
)

DOLLAR_DOWN_PATTERNS = (
    rf"(?:put|place|make)\s+{_MONEY}\s+down",
    rf"down\s*(?:payment)?\s*(?:of|=|:)?\s*{_MONEY}",
    rf"{_MONEY}\s+down\s*(?:payment)?",
)

MONTHLY_RENT_PATTERNS = (
    rf"(?:rent(?:s|ed)?|tenant|leased?)\s+(?:for|at|pays?|around|approximately|roughly|about)\s*{_MONEY}"
    r"\s*(?:/|per|a)?\s*(?:month|mo|monthly)",
    rf"(?:could|can|would|should)\s+(?:rent|lease)\s+(?:for|at)\s*{_MONEY}\s*(?:/|per|a)?\s*(?:month|mo)",
    rf"(?:monthly|month)\s+(?:rental?|income|revenue)\s*(?:is|of|about|around|approximately)?\s*{_MONEY}",
)

ANNUAL_RENT_PROSE_PATTERNS = (
    rf"(?:annual|yearly)\s+(?:rental?|income|revenue)\s*(?:is|of|about|around|approximately)?\s*{_MONEY}",
    rf"(?:generates?|produces?|brings?\s+in|earns?)\s*{_MONEY}\s*(?:/|per|a)?\s*(?:year|yr|annually)",
)

RENT_PER_MONTH_PATTERNS = (
    rf"(?:rent|rental|income)\s*(?:of|for|at|=|:)?\s*{_MONEY}\s*(?:/|per|a)\s*(?:month|mo)",
    rf"{_MONEY}\s*(?:/|per|a)\s*(?:month|mo)\s*(?:rent|rental|income)?",
)

RENT_PER_YEAR_PATTERN = rf"(?:rent|rental|income)\s*(?:of|for|at|=|:)?\s*{_MONEY}\s*(?:/|per|a)?\s*(?:year|yr|annual)"

INTEREST_RATE_PATTERNS = (
    r"(?:finance|financed?|mortgage|borrow)\s+(?:it\s+)?(?:at|for)\s+([\d.]+)\s*%",
    rf"(?:interest(?:\s+rate)?|mortgage\s+rate|{_NOT_OTHER_RATE}\brate)\s*(?:of|at|for|is|=|:)?\s*([\d.]+)\s*%",
    r"([\d.]+)\s*%\s*(?:interest|rate|mortgage|financing|loan)",
    rf"{_NOT_AFTER_RATE}\b(?:at|for)\s+([\d.]+)\s*%\s*(?:a\s+year|per\s+year|annually|annual|p\.?a\.?)?",
)

LTV_PATTERNS = (
    r"(?:ltv|leverage)\s*(?:ratio)?\s*(?:of|at|is|=|:)?\s*([\d.]+)\s*%",
    r"([\d.]+)\s*%\s*(?:ltv|leverage)",
)

LOAN_TERM_PATTERNS = (
    r"(?:loan|mortgage|term)\s*(?:for|of|=|:)?\s*(\d+)\s*(?:year|yr)",
    r"(\d+)\s*(?:year|yr)\s*(?:loan|mortgage|term|fixed|arm)",
    r"(?:financed?|amortized?)\s+(?:over|for)\s*(\d+)\s*(?:year|yr)",
    r"(\d+)[\s-]*(?:year|yr)s?[\s-]+(?:fixed\s+)?(?:loan|mortgage)",
    r"%\s*(?:interest\s+)?(?:over|for)\s+(\d+)\s*(?:years?|yrs?)\b",
)

HOLD_PATTERNS = (
    r"\bhold(?:\s+it)?\s*(?:for|period(?:\s+of)?)?\s*(\d+)\s*(?:year|yr)",
    r"(\d+)[\s-]*(?:year|yr)s?\s*hold",
)

VACANCY_PATTERNS = (
    r"vacancy\s*(?:rate)?\s*(?:of|at|is|=|:)?\s*([\d.]+)\s*%",
    r"([\d.]+)\s*%\s*vacancy",
)

APPRECIATION_PATTERNS = (
    r"(?:appreciation|growth)\s*(?:rate)?\s*(?:of|at|is|=|:)?\s*([\d.]+)\s*%",
    r"([\d.]+)\s*%\s*(?:appreciation|growth)",
)

TAX_PERCENT_PATTERN = r"(?:property\s+)?tax\s*(?:rate)?\s*(?:of|at|is|=|:)?\s*([\d.]+)\s*%"
TAX_DOLLAR_PATTERN = (
    rf"(?:property\s+)?tax(?:es)?\s*(?:are|is|of|about|around|approximately)?\s*{_MONEY}"
    r"\s*(?:/|per|a)?\s*(?:year|yr|annual)"
)

ALL_CASH_PATTERN = r"\ball[\s-]?cash\b|no\s+(?:financing|mortgage|loan)|cash\s+(?:purchase|buy)"
ALL_CASH_PROSE_PATTERN = (
    r"\b(?:all[\s-]?cash|cash\s+(?:purchase|buyer?|deal)|no\s+(?:financing|mortgage|loan)"
    r"|paying\s+cash|without\s+(?:a\s+)?(?:mortgage|loan))\b"
)

CLOSING_PATTERN = rf"closing\s*(?:costs?)?\s*(?:of|at|are|is|=|:)?\s*{_MONEY}"
RENOVATION_PATTERNS = (
    rf"(?:renovation|reno|furnish|remodel|luxury\s*lift|updates?|upgrades?)\s*"
    rf"(?:of|at|=|:|cost|needed|required|budget)?\s*{_MONEY}",
    rf"{_MONEY}\s+(?:in|of|for)\s+(?:renovations?|remodel(?:ing)?|updates?|upgrades?)",
)
NEEDS_RENOVATION_PATTERN = r"\b(?:needs|requires?|needs?\s+some)\s+(?:renovation|work|updating|remodel)"

INSURANCE_PATTERN = rf"insurance\s*(?:of|at|=|:)?\s*{_MONEY}"
HOA_PATTERN = (
    rf"(?:hoa|condo\s+fee|maintenance\s+fee|building\s+fee)s?\s*(?:is|are|of|about|around|:)?\s*{_MONEY}"
    r"\s*(?:/|per|a)?\s*(?:month|mo)"
)
INSURANCE_PROSE_PATTERNS = (
    rf"insurance\s*(?:is|of|at|about|around|approximately|costs?|runs?)?\s*{_MONEY}\s*(?:/|per|a)?\s*(?:year|yr|annual)",
    rf"insurance\s*(?:is|of|at|about|around|approximately|costs?|runs?)?\s*{_MONEY}",
)

STAFF_DISABLE_PATTERN = r"\b(?:remove|no|cut|eliminate|fire|drop)\s+(?:all\s+)?(?:staff|employee|team|personnel)"
STAFF_COUNT_PATTERN = r"(?:add|hire|want|get|with)\s+(\d+)\s*(?:live[\s-]?in\s+)?(?:staff|employee|people)"
SECURITY_COUNT_PATTERN = r"(\d+)\s*(?:security\s+team|guards?|security\s+staff)"
SECURITY_TEAM_PATTERN = r"(?:add|hire|want|get|with)\s+(?:a\s+)?security\s+team"
MANAGER_COUNT_PATTERN = r"(?:add|hire|want|get|with)\s+(\d+)\s*(?:property\s+)?manager"

SCARCITY_PATTERNS = (
    (
        r"\b(?:private|secluded)\s+beach\b|\bbeachfront\b|\boceanfront\b|\bdirect\s+beach",
        "scarcity_private_beach",
        "Scarcity: private beach / oceanfront",
    ),
    (r"\bhistoric\b|\bheritage\b|\blandmark\b|\bcentury[\s-]old\b", "scarcity_historic_heritage", "Scarcity: historic heritage"),
    (r"\bstarchitect\b|\bfamous\s+architect|\bpritzker\b|\bdesigned\s+by\s+\w+\s+\w+", "scarcity_starchitect", "Scarcity: starchitect design"),
    (
        r"\bunique\s+view\b|\bocean\s+view\b|\bpanoramic\b|\bunobstructed\s+view\b|\bcity\s+view\b|\bskyline\s+view",
        "scarcity_unique_view",
        "Scarcity: unique view",
    ),
)

# Longest-first so "pool maintenance" wins over "pool"
SERVICE_KEYWORDS: tuple[tuple[str, str, str | None, float], ...] = (
    ("pool maintenance", "pool_maintenance", "infinity_pool", 0.0025),
    ("infinity pool", "pool_maintenance", "infinity_pool", 0.003),
    ("property management", "property_management", None, 0.004),
    ("smart home", "smart_home_systems", "smart_home_updates", 0.0023),
    ("wine cellar", "wine_climate", "wine_climate_control", 0.0017),
    ("wine climate", "wine_climate", "wine_climate_control", 0.0017),
    ("high end landscaping", "high_end_landscaping", None, 0.005),
    ("high-end landscaping", "high_end_landscaping", None, 0.005),
    ("landscaping", "high_end_landscaping", None, 0.005),
    ("security", "specialized_security", None, 0.012),
    ("concierge", "concierge", None, 0.008),
    ("pool", "pool_maintenance", "infinity_pool", 0.0025),
    ("wine", "wine_climate", "wine_climate_control", 0.0017),
    ("management", "property_management", None, 0.004),
)

# Parameter names accepted by "set/put/change/adjust/make <name> to <value>"
PARAM_NAMES: tuple[tuple[str, str, str, str], ...] = (
    ("loan term", "loan_term_years", "years", "Loan term"),
    ("term", "loan_term_years", "years", "Loan term"),
    ("hold period", "hold_period_years", "years", "Hold period"),
    ("hold", "hold_period_years", "years", "Hold period"),
    ("rate", "interest_rate", "percent", "Interest rate"),
    ("interest rate", "interest_rate", "percent", "Interest rate"),
    ("mortgage rate", "interest_rate", "percent", "Interest rate"),
    ("vacancy", "vacancy_rate", "percent", "Vacancy rate"),
    ("vacancy rate", "vacancy_rate", "percent", "Vacancy rate"),
    ("appreciation", "base_appreciation_rate", "percent", "Appreciation"),
    ("appreciation rate", "base_appreciation_rate", "percent", "Appreciation"),
    ("growth", "base_appreciation_rate", "percent", "Appreciation"),
    ("growth rate", "base_appreciation_rate", "percent", "Appreciation"),
    ("tax", "property_tax_rate", "percent", "Property tax"),
    ("property tax", "property_tax_rate", "percent", "Property tax"),
    ("tax rate", "property_tax_rate", "percent", "Property tax"),
    ("rent", "gross_annual_rent", "money", "Gross annual rent"),
    ("annual rent", "gross_annual_rent", "money", "Gross annual rent"),
    ("insurance", "annual_insurance", "money", "Insurance"),
    ("closing costs", "closing_costs", "money", "Closing costs"),
    ("closing", "closing_costs", "money", "Closing costs"),
    ("renovation", "renovation_costs", "money", "Renovation"),
    ("reno", "renovation_costs", "money", "Renovation"),
    ("ltv", "ltv_ratio", "percent", "LTV"),
    ("leverage", "ltv_ratio", "percent", "LTV"),
    ("concierge budget", "concierge", "money", "Concierge"),
    ("security budget", "specialized_security", "money", "Security"),
    ("landscaping budget", "high_end_landscaping", "money", "Landscaping"),
    ("pool budget", "pool_maintenance", "money", "Pool maintenance"),
    ("smart home budget", "smart_home_systems", "money", "Smart home"),
    ("staff salary", "avg_staff_salary", "money", "Staff salary"),
    ("salary", "avg_staff_salary", "money", "Staff salary"),
    ("management fee", "property_management", "money", "Management"),
)
_PARAM_NAMES_LONGEST_FIRST = sorted(PARAM_NAMES, key=lambda p: len(p[0]), reverse=True)

_SET_COMMAND_RE = re.compile(
    r"\b(?:set|put|change|adjust|make)\s+(?:the\s+)?(.+?)\s+(?:to|at|=)\s+(.+?)"
    r"(?:\.(?!\d)|,|$|\s+(?:too|also|as\s+well|and\b))",
    re.IGNORECASE,
)


# --- Negation scope ---

NEGATION_WORDS = frozenset({"remove", "disable", "cut", "drop", "without", "eliminate", "cancel", "stop", "no"})
ENABLING_WORDS = frozenset(
    {"add", "keep", "want", "enable", "include", "hire", "get", "with", "need", "set", "put", "change", "make", "adjust"}
)
SCOPE_BOUNDARIES = frozenset({".", ";", "!", "?", "but", "however", "except"})

_SCOPE_TOKEN_RE = re.compile(r"[a-z]+|[;!?]|\.(?!\d)")


def is_negated(prefix: str) -> bool:
    """Whether the clause ending at ``prefix`` switches something off.

    Tokens are scanned backwards from the keyword. A negation word (or
    "turn off") negates; an enabling verb, "turn on" or a clause boundary
    ends the scope first.
    """
    tokens = _SCOPE_TOKEN_RE.findall(prefix.lower())
    for i in range(len(tokens) - 1, -1, -1):
        token = tokens[i]
        previous = tokens[i - 1] if i > 0 else ""
        if token in SCOPE_BOUNDARIES:
            return False
        if previous == "turn" and token in ("off", "on"):
            return token == "off"
        if token in NEGATION_WORDS:
            return True
        if token in ENABLING_WORDS:
            return False
    return False


# --- Rules needing more than one regex group ---


def _percent_down(ctx: ParseContext) -> Extraction | None:
    for pattern in PERCENT_DOWN_PATTERNS:
        m = re.search(pattern, ctx.text, re.IGNORECASE)
        if m is None:
            continue
        pct = _to_float(m.group(1))
        if pct is not None and 0 <= pct <= 100:
            ltv = 100 - pct
            return Extraction.single(
                "ltv_ratio", ltv, f"Down payment {format_number(pct)}% → LTV {format_number(ltv)}%"
            )
    return None


def _dollar_down(ctx: ParseContext) -> Extraction | None:
    value = ctx.property_value
    if value <= 0:
        return None
    for pattern in DOLLAR_DOWN_PATTERNS:
        m = re.search(pattern, ctx.text, re.IGNORECASE)
        if m is None:
            continue
        down = parse_money(m.group(1))
        if not down:
            continue
        ltv = max(0.0, min(100.0, (value - down) / value * 100))
        ltv = round_to_step(ltv, DOWN_PAYMENT_LTV_STEP)
        return Extraction.single(
            "ltv_ratio", ltv, f"Down payment {format_usd(down)} → LTV {format_number(ltv)}%"
        )
    return None


def _tax_from_dollars(ctx: ParseContext) -> Extraction | None:
    m = re.search(TAX_DOLLAR_PATTERN, ctx.text, re.IGNORECASE)
    value = ctx.property_value
    if m is None or value <= 0:
        return None
    tax = parse_money(m.group(1))
    if not tax:
        return None
    rate = _round_cents(tax / value * 100)
    return Extraction.single("property_tax_rate", rate, f"Property tax → {format_number(rate)}% ({format_usd(tax)}/yr)")


def _region(ctx: ParseContext) -> Extraction | None:
    region = match_region(ctx.text, CHAT_REGION_KEYWORDS)
    if region is None:
        return None
    return Extraction.single("market_region", region, f"Market region → {region}")


def detect_structure(text: str) -> str | None:
    """Holding structure named in ``text``, if any."""
    lower = text.lower()
    if re.search(r"\b(?:sci|offshore|bvi|foreign)\b", lower):
        return "foreign"
    if re.search(r"\btrust\b|irrevocable", lower):
        return "trust"
    if re.search(r"\bllc\b", lower):
        return "llc"
    if re.search(r"\bpersonal\b|personally", lower):
        return "personal"
    return None


def _structure(ctx: ParseContext) -> Extraction | None:
    structure = detect_structure(ctx.text)
    if structure is None:
        return None
    return Extraction.single("holding_structure", structure, f"Holding structure → {structure.upper()}")


def _estimated_renovation(ctx: ParseContext) -> Extraction | None:
    if re.search(NEEDS_RENOVATION_PATTERN, ctx.lower) is None:
        return None
    estimate = (
        round_to_step(ctx.property_value * RENOVATION_ESTIMATE_RATIO, RENOVATION_ESTIMATE_STEP)
        or RENOVATION_ESTIMATE_FLOOR
    )
    return Extraction.single("renovation_costs", estimate, f"Renovation (estimated) → {format_usd(estimate)}")


def _convert_setting(kind: str, field_name: str, raw: str) -> float | int | None:
    if kind == "years":
        years = _to_int(raw)
        if years is None:
            return None
        return years if 0 < years <= MAX_GENERIC_YEARS and _in_bounds(field_name, years) else None
    if kind == "percent":
        pct = parse_percent(raw)
        if pct is None:
            pct = _to_float(raw)
        return pct if pct is not None and 0 <= pct <= 100 and _in_bounds(field_name, pct) else None
    return parse_money(raw) or None


def _describe_setting(kind: str, label: str, value: float) -> str:
    if kind == "years":
        return f"{label} → {value} years"
    if kind == "percent":
        return f"{label} → {format_number(value)}%"
    return f"{label} → {format_usd(value)}"


def _set_commands(ctx: ParseContext) -> Extraction | None:
    """Generic "set/put/change/adjust/make <name> to <value>"."""
    params: dict[str, Any] = {}
    descriptions: list[str] = []

    for m in _SET_COMMAND_RE.finditer(ctx.text):
        name = m.group(1).strip().lower()
        raw_value = m.group(2).strip()
        for key, field_name, kind, label in _PARAM_NAMES_LONGEST_FIRST:
            if key not in name:
                continue
            if field_name in ctx.extracted or field_name in params:
                break
            value = _convert_setting(kind, field_name, raw_value)
            if value is not None:
                params[field_name] = value
                descriptions.append(_describe_setting(kind, label, value))
            break

    return Extraction(params, tuple(descriptions)) if params else None


def _keyword_pattern(keyword: str) -> str:
    return r"[\s-]+".join(re.escape(word) for word in re.split(r"[\s-]+", keyword))


def _service_toggles(ctx: ParseContext) -> Extraction | None:
    """Enable, price or disable luxury services mentioned in the message.

    Each cost field is claimed by the first (longest) keyword found.
    """
    params: dict[str, Any] = {}
    descriptions: list[str] = []
    handled: set[str] = set()

    for keyword, cost_field, flag_field, ratio in SERVICE_KEYWORDS:
        if cost_field in handled:
            continue
        kw = _keyword_pattern(keyword)
        m = re.search(rf"\b{kw}\b", ctx.text, re.IGNORECASE)
        if m is None:
            continue
        handled.add(cost_field)
        if cost_field in ctx.extracted:
            continue

        if is_negated(ctx.text[: m.start()]):
            params[cost_field] = 0
            if flag_field:
                params[flag_field] = False
            descriptions.append(f"Disabled {keyword}")
            continue

        amount_match = re.search(
            rf"{kw}\s*(?:at|of|for|=|:|budget)?\s*(\$?\s*[\d,.]+\s*[MmKk])",
            ctx.text[m.start():],
            re.IGNORECASE,
        )
        amount = parse_money(amount_match.group(1)) if amount_match else None
        if amount:
            params[cost_field] = amount
            descriptions.append(f"{keyword} → {format_usd(amount)}/yr")
        else:
            default = round_to_step(ctx.property_value * ratio, SERVICE_DEFAULT_STEP) or SERVICE_DEFAULT_FLOOR
            params[cost_field] = default
            descriptions.append(f"Enabled {keyword} → {format_usd(default)}/yr")
        if flag_field:
            params[flag_field] = True

    return Extraction(params, tuple(descriptions)) if params else None


def _remove_all_staff(ctx: ParseContext) -> Extraction | None:
    if re.search(STAFF_DISABLE_PATTERN, ctx.lower) is None:
        return None
    return Extraction(
        {"live_in_staff": 0, "security_team": 0, "property_managers": 0},
        ("Removed all staff",),
    )


_STAFF_HEADCOUNT_RULES = (
    pattern_rule(STAFF_COUNT_PATTERN, "live_in_staff", _headcount, lambda n: f"Live-in staff → {n}"),
    pattern_rule(SECURITY_COUNT_PATTERN, "security_team", _headcount, lambda n: f"Security team → {n}"),
    flag_rule(SECURITY_TEAM_PATTERN, "security_team", 1, "Security team → 1"),
    pattern_rule(MANAGER_COUNT_PATTERN, "property_managers", _headcount, lambda n: f"Property managers → {n}"),
)


def _staff_headcounts(ctx: ParseContext) -> Extraction | None:
    return merge_all(_STAFF_HEADCOUNT_RULES, ctx)


# --- Rule table ---

def _describe_rent(v: float) -> str:
    return f"Gross rent → {format_usd(v)}/yr"


def _tax_percent(raw: str, ctx: ParseContext) -> float | None:
    rate = _to_float(raw)
    return rate if rate is not None and rate <= MAX_TAX_RATE_PCT else None


def _describe_monthly_rent(v: float) -> str:
    return f"Gross rent → {format_usd(v)}/yr ({format_usd(v / 12)}/mo)"


RULES: tuple[FieldRule, ...] = (
    FieldRule(
        "property_value",
        ("property_value",),
        tuple(
            pattern_rule(p, "property_value", _price, lambda v: f"Property value → ${v / 1_000_000:.1f}M")
            for p in PRICE_PATTERNS
        ),
    ),
    FieldRule("down_payment", ("ltv_ratio",), (_percent_down, _dollar_down)),
    FieldRule(
        "rent",
        ("gross_annual_rent",),
        (
            *(pattern_rule(p, "gross_annual_rent", _monthly_money, _describe_monthly_rent) for p in MONTHLY_RENT_PATTERNS),
            *(pattern_rule(p, "gross_annual_rent", _money, _describe_rent) for p in ANNUAL_RENT_PROSE_PATTERNS),
            *(pattern_rule(p, "gross_annual_rent", _monthly_money, _describe_monthly_rent) for p in RENT_PER_MONTH_PATTERNS),
            pattern_rule(RENT_PER_YEAR_PATTERN, "gross_annual_rent", _money, _describe_rent),
        ),
    ),
    FieldRule(
        "interest_rate",
        ("interest_rate",),
        tuple(
            pattern_rule(p, "interest_rate", _interest_rate, lambda v: f"Interest rate → {format_number(v)}%")
            for p in INTEREST_RATE_PATTERNS
        ),
    ),
    FieldRule(
        "ltv",
        ("ltv_ratio",),
        tuple(
            pattern_rule(p, "ltv_ratio", _bounded_percent("ltv_ratio"), lambda v: f"LTV → {format_number(v)}%")
            for p in LTV_PATTERNS
        ),
    ),
    FieldRule(
        "loan_term",
        ("loan_term_years",),
        tuple(
            pattern_rule(p, "loan_term_years", _bounded_years("loan_term_years"), lambda y: f"Loan term → {y} years")
            for p in LOAN_TERM_PATTERNS
        ),
    ),
    FieldRule(
        "hold_period",
        ("hold_period_years",),
        tuple(
            pattern_rule(
                p, "hold_period_years", _bounded_years("hold_period_years"), lambda y: f"Hold period → {y} years"
            )
            for p in HOLD_PATTERNS
        ),
    ),
    FieldRule(
        "vacancy",
        ("vacancy_rate",),
        tuple(
            pattern_rule(
                p, "vacancy_rate", _bounded_percent("vacancy_rate"), lambda v: f"Vacancy rate → {format_number(v)}%"
            )
            for p in VACANCY_PATTERNS
        ),
    ),
    FieldRule(
        "appreciation",
        ("base_appreciation_rate",),
        tuple(
            pattern_rule(
                p,
                "base_appreciation_rate",
                _bounded_percent("base_appreciation_rate"),
                lambda v: f"Base appreciation → {format_number(v)}%/yr",
            )
            for p in APPRECIATION_PATTERNS
        ),
    ),
    FieldRule(
        "property_tax",
        ("property_tax_rate",),
        (
            pattern_rule(
                TAX_PERCENT_PATTERN,
                "property_tax_rate",
                _tax_percent,
                lambda v: f"Property tax → {format_number(v)}%",
            ),
            _tax_from_dollars,
        ),
    ),
    FieldRule(
        "all_cash",
        ("ltv_ratio",),
        (flag_rule(ALL_CASH_PATTERN, "ltv_ratio", 0, "All-cash purchase → LTV 0%"),),
        override=True,
    ),
    FieldRule("region", ("market_region",), (_region,)),
    FieldRule("holding_structure", ("holding_structure",), (_structure,)),
    FieldRule(
        "closing_costs",
        ("closing_costs",),
        (pattern_rule(CLOSING_PATTERN, "closing_costs", _money, lambda v: f"Closing costs → {format_usd(v)}"),),
    ),
    FieldRule(
        "renovation",
        ("renovation_costs",),
        (
            *(
                pattern_rule(p, "renovation_costs", _money, lambda v: f"Renovation → {format_usd(v)}")
                for p in RENOVATION_PATTERNS
            ),
            _estimated_renovation,
        ),
    ),
    FieldRule("set_command", (), (_set_commands,)),
    FieldRule("services", (), (_service_toggles,)),
    FieldRule(
        "staffing",
        ("live_in_staff", "security_team", "property_managers"),
        (_remove_all_staff, _staff_headcounts),
    ),
    FieldRule(
        "insurance",
        ("annual_insurance",),
        (pattern_rule(INSURANCE_PATTERN, "annual_insurance", _money, lambda v: f"Insurance → {format_usd(v)}/yr"),),
    ),
    FieldRule(
        "scarcity",
        (),
        tuple(flag_rule(pattern, name, True, description) for pattern, name, description in SCARCITY_PATTERNS),
        combine=merge_all,
    ),
    FieldRule(
        "all_cash_prose",
        ("ltv_ratio",),
        (flag_rule(ALL_CASH_PROSE_PATTERN, "ltv_ratio", 0, "All-cash purchase → LTV 0%"),),
    ),
    FieldRule(
        "hoa_fees",
        ("annual_insurance",),
        (
            pattern_rule(
                HOA_PATTERN,
                "annual_insurance",
                _monthly_money,
                lambda v: f"HOA/Fees → {format_usd(v)}/yr (added as insurance)",
            ),
        ),
    ),
    FieldRule(
        "insurance_prose",
        ("annual_insurance",),
        tuple(
            pattern_rule(p, "annual_insurance", _money, lambda v: f"Insurance → {format_usd(v)}/yr")
            for p in INSURANCE_PROSE_PATTERNS
        ),
    ),
)


def parse_user_message(
    text: str,
    current_property_value: float,
    rules: Sequence[FieldRule] = RULES,
) -> ExtractionResult:
    """Extract scenario updates from one chat message.

    Args:
        text: Free-text user message
        current_property_value: Property value of the current scenario, used
            for amounts expressed relative to it (down payment, tax in $)
        rules: Rule table, in precedence order

    Returns:
        ExtractionResult with the partial update and one description per
        extraction. Empty when nothing was recognised.
    """
    params: dict[str, Any] = {}
    descriptions: list[str] = []

    for group in rules:
        if not group.applies(params):
            continue
        ctx = ParseContext(text, current_property_value, MappingProxyType(dict(params)))
        hit = group.evaluate(ctx)
        if hit is None:
            continue
        params.update(hit.params)
        descriptions.extend(hit.descriptions)

    log.debug("message_parsed", fields=sorted(params), descriptions=len(descriptions))
    return ExtractionResult(params=params, descriptions=descriptions)
