from dataclasses import dataclass
from datetime import date

import pandas as pd


UNKNOWN_TERM_TEXT = "Unknown Term"
CHOOSE_OPTION = {"key": "", "text": "Choose...", "value": ""}

_HISTORY_YEARS = 2
_FUTURE_MONTHS = 6
# Display lookup only understands "{def_key}{yy}" keys shorter than this.
# Keys such as "sum100" (post-2099) or longer definition keys fall through
# to UNKNOWN_TERM_TEXT.
_MAX_TERM_KEY_LEN = 6


@dataclass(frozen=True)
class InstructionalTerm:
    key: str
    text_prefix: str
    months: tuple[int, ...]

    @property
    def first_month(self) -> int:
        return min(self.months)


INSTRUCTIONAL_TERMS: tuple[InstructionalTerm, ...] = (
    InstructionalTerm("fq", "Fall Quarter", (9, 10, 11, 12)),
    InstructionalTerm("wq", "Winter Quarter", (1, 2, 3, 4)),
    InstructionalTerm("sq", "Spring Quarter", (4, 5, 6)),
    InstructionalTerm("ss", "Spring Semester", (1, 2, 3, 4, 5)),
    InstructionalTerm("sum", "Summer", (6, 7, 8)),
    InstructionalTerm("fs", "Fall Semester", (8, 9, 10, 11, 12)),
)

_TERMS_BY_KEY = {t.key: t for t in INSTRUCTIONAL_TERMS}
_CATALOG_POSITION = {t.key: idx for idx, t in enumerate(INSTRUCTIONAL_TERMS)}


def parse_reference_date(raw=None) -> pd.Timestamp:
    """
    Validate a caller-supplied reference date.

    Accepts None/"" (now), date, datetime, Timestamp or an ISO-8601 string.
    Raises ValueError for anything that does not resolve to a real date.
    Timezone info is dropped; only the wall-clock calendar date matters.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return pd.Timestamp.now().normalize()
    if not isinstance(raw, (str, date)):
        raise ValueError(f"Unsupported reference date type: {type(raw).__name__}")
    try:
        ts = pd.Timestamp(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"Cannot parse reference date: {raw!r}") from exc
    if pd.isna(ts):
        raise ValueError(f"Cannot parse reference date: {raw!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts


def _two_digit_year(year) -> str:
    try:
        if pd.isna(year):
            return ""
        return str(int(year))[-2:]
    except (TypeError, ValueError):
        return ""


def _months_in_window(reference: pd.Timestamp) -> pd.PeriodIndex:
    historical = reference - pd.DateOffset(years=_HISTORY_YEARS)
    future = reference + pd.DateOffset(months=_FUTURE_MONTHS)
    past = pd.period_range(start=historical, end=reference, freq="M")
    upcoming = pd.period_range(start=reference, end=future, freq="M")
    # union() collapses the shared boundary month and returns periods sorted.
    return past.union(upcoming)


def term_sort_key(option: dict) -> tuple[int, int, int]:
    """(year, first month of the term definition, catalog position)."""
    term = _TERMS_BY_KEY[option["key"][:-2]]
    year = int(option["text"].rsplit(" ", 1)[-1])
    return year, term.first_month, _CATALOG_POSITION[term.key]


def generate_term_options(reference_date=None) -> list[dict]:
    """
    Build the instructional-term dropdown for a reference date.

    Covers every month from two years before the reference date through six
    months after it. Each term whose months include one of those calendar
    months contributes a single option for that month's year, e.g. 'fq24'
    -> 'Fall Quarter 2024'. Options come back sorted by year, then by the
    month the term starts in, behind a leading 'Choose...' entry.
    """
    reference = parse_reference_date(reference_date)

    seen: set[str] = set()
    collected: list[dict] = []
    for period in _months_in_window(reference):
        for term in INSTRUCTIONAL_TERMS:
            if period.month not in term.months:
                continue
            key = f"{term.key}{_two_digit_year(period.year)}"
            if key in seen:
                continue
            seen.add(key)
            sort_key = (int(period.year), term.first_month, _CATALOG_POSITION[term.key])
            collected.append((sort_key, {
                "key": key,
                "text": f"{term.text_prefix} {period.year}",
                "value": key,
            }))

    collected.sort(key=lambda item: item[0])
    return [dict(CHOOSE_OPTION)] + [option for _, option in collected]


def get_term_display_text(term_key) -> str:
    """'fq24' -> 'Fall Quarter 2024'. Anything unrecognized -> 'Unknown Term'."""
    if not isinstance(term_key, str) or not term_key:
        return UNKNOWN_TERM_TEXT
    if len(term_key) >= _MAX_TERM_KEY_LEN:
        return UNKNOWN_TERM_TEXT
    def_key, year_suffix = term_key[:-2], term_key[-2:]
    term = _TERMS_BY_KEY.get(def_key)
    if term is None:
        return UNKNOWN_TERM_TEXT
    return f"{term.text_prefix} 20{year_suffix}"
