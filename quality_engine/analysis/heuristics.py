# Data Quality Engine - Column Heuristics
# Column-name pattern table and reference data used by the validators

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_header(name: str) -> str:
    """``"Birth Date"`` / ``"birthDate"`` / ``"birth-date"`` -> ``"birth_date"``."""
    spaced = _CAMEL_RE.sub("_", str(name))
    return _NON_ALNUM_RE.sub("_", spaced.lower()).strip("_")


def header_tokens(name: str) -> tuple[str, ...]:
    normalized = normalize_header(name)
    return tuple(t for t in normalized.split("_") if t)


@dataclass(frozen=True)
class ColumnPattern:
    """
    Matches a header when one of ``tokens`` is a whole word of the
    normalised name, or one of ``phrases`` appears as consecutive words.
    """

    name: str
    tokens: frozenset[str]
    phrases: tuple[tuple[str, ...], ...] = ()

    def matches(self, header: str) -> bool:
        words = header_tokens(header)
        if any(word in self.tokens for word in words):
            return True
        for phrase in self.phrases:
            size = len(phrase)
            if any(words[i:i + size] == phrase for i in range(len(words) - size + 1)):
                return True
        return False

    def find(self, headers: Iterable[str]) -> Optional[str]:
        """First matching header in header order."""
        return next((h for h in headers if self.matches(h)), None)

    def find_all(self, headers: Iterable[str]) -> list[str]:
        return [h for h in headers if self.matches(h)]


def _pattern(name: str, *tokens: str, phrases: Sequence[tuple[str, ...]] = ()) -> ColumnPattern:
    return ColumnPattern(name=name, tokens=frozenset(tokens), phrases=tuple(phrases))


# ============================================================================
# Pattern table
# ============================================================================

AGE = _pattern("age", "age")
BIRTH_DATE = _pattern(
    "birth_date", "dob", "birthdate", "birthday",
    phrases=[("birth", "date"), ("date", "of", "birth"), ("birth", "day")],
)
DATE = _pattern("date", "date", "dob", "birthdate", "birthday", "datetime", "timestamp")
EMAIL = _pattern("email", "email", "mail", phrases=[("e", "mail")])
PHONE = _pattern("phone", "phone", "telephone", "tel", "mobile", "cell", "fax")
SALARY = _pattern("salary", "salary", "income", "wage", "wages")
NON_NEGATIVE = _pattern("non_negative", "price", "cost", "quantity", "qty", "amount", "units", "stock")
PERCENT = _pattern("percent", "percent", "percentage", "pct", "rate")

START = _pattern("start", "start", "begin", "starts", "started")
END = _pattern("end", "end", "finish", "ends", "ended")
EXPERIENCE = _pattern("experience", "experience", "years", "tenure")

TOTAL = _pattern("total", "total")
SUBTOTAL = _pattern("subtotal", "subtotal", phrases=[("sub", "total")])
TAX = _pattern("tax", "tax", "vat")
SHIPPING = _pattern("shipping", "shipping", "delivery", "freight")
FEE = _pattern("fee", "fee", "fees")
TIP = _pattern("tip", "tip", "gratuity")
DISCOUNT = _pattern("discount", "discount")
QUANTITY = _pattern("quantity", "quantity", "qty", "units")
UNIT_PRICE = _pattern("unit_price", "unitprice", "price", phrases=[("unit", "price")])

COUNTRY = _pattern("country", "country")
CURRENCY = _pattern("currency", "currency")

# Components added to (or, for discount, removed from) a total
TOTAL_COMPONENTS: tuple[tuple[ColumnPattern, int], ...] = (
    (SUBTOTAL, 1),
    (TAX, 1),
    (SHIPPING, 1),
    (FEE, 1),
    (TIP, 1),
    (DISCOUNT, -1),
)


def is_start_date(header: str) -> bool:
    return START.matches(header) and DATE.matches(header)


def is_end_date(header: str) -> bool:
    return END.matches(header) and DATE.matches(header)


# ============================================================================
# Reference data
# ============================================================================

# country -> (ISO currency, international calling code)
_COUNTRIES: dict[str, tuple[str, str]] = {
    "united states": ("USD", "1"),
    "canada": ("CAD", "1"),
    "mexico": ("MXN", "52"),
    "brazil": ("BRL", "55"),
    "argentina": ("ARS", "54"),
    "united kingdom": ("GBP", "44"),
    "ireland": ("EUR", "353"),
    "france": ("EUR", "33"),
    "germany": ("EUR", "49"),
    "spain": ("EUR", "34"),
    "italy": ("EUR", "39"),
    "netherlands": ("EUR", "31"),
    "belgium": ("EUR", "32"),
    "portugal": ("EUR", "351"),
    "austria": ("EUR", "43"),
    "switzerland": ("CHF", "41"),
    "sweden": ("SEK", "46"),
    "norway": ("NOK", "47"),
    "denmark": ("DKK", "45"),
    "poland": ("PLN", "48"),
    "russia": ("RUB", "7"),
    "turkey": ("TRY", "90"),
    "india": ("INR", "91"),
    "china": ("CNY", "86"),
    "japan": ("JPY", "81"),
    "south korea": ("KRW", "82"),
    "singapore": ("SGD", "65"),
    "australia": ("AUD", "61"),
    "new zealand": ("NZD", "64"),
    "south africa": ("ZAR", "27"),
    "nigeria": ("NGN", "234"),
    "egypt": ("EGP", "20"),
    "united arab emirates": ("AED", "971"),
    "saudi arabia": ("SAR", "966"),
}

_COUNTRY_ALIASES: dict[str, str] = {
    "us": "united states", "usa": "united states", "united states of america": "united states",
    "ca": "canada", "can": "canada",
    "mx": "mexico", "mex": "mexico",
    "br": "brazil", "bra": "brazil",
    "ar": "argentina", "arg": "argentina",
    "uk": "united kingdom", "gb": "united kingdom", "gbr": "united kingdom",
    "great britain": "united kingdom", "england": "united kingdom",
    "ie": "ireland", "irl": "ireland",
    "fr": "france", "fra": "france",
    "de": "germany", "deu": "germany",
    "es": "spain", "esp": "spain",
    "it": "italy", "ita": "italy",
    "nl": "netherlands", "nld": "netherlands", "holland": "netherlands",
    "be": "belgium", "bel": "belgium",
    "pt": "portugal", "prt": "portugal",
    "at": "austria", "aut": "austria",
    "ch": "switzerland", "che": "switzerland",
    "se": "sweden", "swe": "sweden",
    "no": "norway", "nor": "norway",
    "dk": "denmark", "dnk": "denmark",
    "pl": "poland", "pol": "poland",
    "ru": "russia", "rus": "russia",
    "tr": "turkey", "tur": "turkey",
    "in": "india", "ind": "india",
    "cn": "china", "chn": "china",
    "jp": "japan", "jpn": "japan",
    "kr": "south korea", "kor": "south korea", "korea": "south korea",
    "sg": "singapore", "sgp": "singapore",
    "au": "australia", "aus": "australia",
    "nz": "new zealand", "nzl": "new zealand",
    "za": "south africa", "zaf": "south africa",
    "ng": "nigeria", "nga": "nigeria",
    "eg": "egypt", "egy": "egypt",
    "ae": "united arab emirates", "are": "united arab emirates", "uae": "united arab emirates",
    "sa": "saudi arabia", "sau": "saudi arabia",
}

COUNTRY_CURRENCY: Mapping[str, str] = MappingProxyType(
    {country: currency for country, (currency, _) in _COUNTRIES.items()}
)
COUNTRY_CALLING_CODE: Mapping[str, str] = MappingProxyType(
    {country: code for country, (_, code) in _COUNTRIES.items()}
)

CURRENCY_SYMBOLS: Mapping[str, str] = MappingProxyType({
    "us$": "USD", "c$": "CAD", "a$": "AUD", "€": "EUR", "£": "GBP",
    "₹": "INR", "₩": "KRW", "r$": "BRL",
})


def resolve_country(value: object) -> Optional[str]:
    """Canonical country name for a name or ISO code, or None if unknown."""
    text = " ".join(str(value).strip().lower().replace(".", "").split())
    if text in _COUNTRIES:
        return text
    return _COUNTRY_ALIASES.get(text)


def resolve_currency(value: object) -> Optional[str]:
    """ISO currency code for a code or symbol, or None if unrecognised."""
    text = str(value).strip()
    symbol = CURRENCY_SYMBOLS.get(text.lower())
    if symbol:
        return symbol
    if re.fullmatch(r"[A-Za-z]{3}", text):
        return text.upper()
    return None
