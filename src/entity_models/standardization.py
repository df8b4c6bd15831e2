"""Shared label standardization used by several entity models.

Vendor systems describe stages, sectors, and geographies in free text.
These helpers map that text onto the fixed vocabularies the rule tables
compare against. Keyword tables are checked in order and the first table
entry with a keyword contained in the upper-cased value wins.
"""

from __future__ import annotations

from typing import Sequence

from core.values import months_between, to_date, to_label, years_between
from entity_models.base import AS_OF_FIELD
from transforms.predicates import Row, eq, gt, gte
from transforms.rule_cascade import DerivedStep, TierStep, derived, tier

KeywordTable = Sequence[tuple[str, Sequence[str]]]

INVESTMENT_TYPE_KEYWORDS: KeywordTable = (
    ("EQUITY", ("EQUITY", "STOCK")),
    ("DEBT", ("DEBT", "LOAN")),
    ("CONVERTIBLE", ("CONVERTIBLE",)),
    ("WARRANT", ("WARRANT",)),
    ("MEZZANINE", ("MEZZANINE",)),
)
INVESTMENT_STAGE_KEYWORDS: KeywordTable = (
    ("SEED", ("SEED",)),
    ("EARLY_STAGE", ("SERIES A", "EARLY")),
    ("GROWTH", ("SERIES B", "GROWTH")),
    ("LATE_STAGE", ("SERIES C", "LATE")),
    ("BUYOUT", ("BUYOUT", "LBO")),
    ("MEZZANINE", ("MEZZANINE",)),
    ("DISTRESSED", ("DISTRESSED",)),
)
SECTOR_KEYWORDS: KeywordTable = (
    ("TECHNOLOGY", ("TECHNOLOGY", "SOFTWARE")),
    ("HEALTHCARE", ("HEALTHCARE", "MEDICAL")),
    ("FINANCIAL_SERVICES", ("FINANCIAL", "FINTECH")),
    ("CONSUMER", ("CONSUMER", "RETAIL")),
    ("INDUSTRIALS", ("INDUSTRIAL", "MANUFACTURING")),
    ("ENERGY", ("ENERGY", "RENEWABLE")),
    ("REAL_ESTATE", ("REAL ESTATE",)),
)
GEOGRAPHY_KEYWORDS: KeywordTable = (
    ("NORTH_AMERICA", ("NORTH AMERICA", "US", "CANADA")),
    ("EUROPE", ("EUROPE", "EU")),
    ("ASIA_PACIFIC", ("ASIA", "PACIFIC")),
    ("LATIN_AMERICA", ("LATIN", "SOUTH AMERICA")),
)
EXIT_STRATEGY_KEYWORDS: KeywordTable = (
    ("IPO", ("IPO",)),
    ("STRATEGIC_SALE", ("STRATEGIC",)),
    ("FINANCIAL_SALE", ("FINANCIAL", "SPONSOR")),
    ("MANAGEMENT_BUYOUT", ("MANAGEMENT", "MBO")),
    ("DIVIDEND_RECAP", ("DIVIDEND",)),
)
ANTI_DILUTION_KEYWORDS: KeywordTable = (
    ("WEIGHTED_AVERAGE_BROAD", ("WEIGHTED AVERAGE BROAD",)),
    ("WEIGHTED_AVERAGE_NARROW", ("WEIGHTED AVERAGE NARROW",)),
    ("FULL_RATCHET", ("FULL RATCHET",)),
    ("NONE", ("NO", "NONE")),
)
LIQUIDATION_PREFERENCE_KEYWORDS: KeywordTable = (
    ("NON_PARTICIPATING", ("NON-PARTICIPATING",)),
    ("PARTICIPATING", ("PARTICIPATING",)),
    ("SIMPLE_PREFERRED", ("1.0X",)),
)
VALUATION_METHOD_KEYWORDS: KeywordTable = (
    ("MARKET_MULTIPLE", ("MARKET", "MULTIPLE")),
    ("DCF", ("DCF", "DISCOUNTED")),
    ("RECENT_TRANSACTION", ("TRANSACTION", "RECENT")),
    ("COST_BASIS", ("COST", "BOOK")),
    ("LIQUIDATION_VALUE", ("LIQUIDATION",)),
)
INVESTOR_TYPE_KEYWORDS: KeywordTable = (
    ("PENSION_FUND", ("PENSION",)),
    ("ENDOWMENT", ("ENDOWMENT",)),
    ("FOUNDATION", ("FOUNDATION",)),
    ("INSURANCE_COMPANY", ("INSURANCE",)),
    ("SOVEREIGN_WEALTH_FUND", ("SOVEREIGN",)),
    ("FAMILY_OFFICE", ("FAMILY",)),
    ("FUND_OF_FUNDS", ("FUND OF FUNDS",)),
    ("BANK", ("BANK",)),
    ("CORPORATE", ("CORPORATE",)),
    ("HIGH_NET_WORTH", ("INDIVIDUAL", "HNW")),
)
COUNTRY_ALIASES: dict[str, str] = {
    "USA": "US",
    "UNITED STATES": "US",
    "UK": "GB",
    "UNITED KINGDOM": "GB",
    "GERMANY": "DE",
    "FRANCE": "FR",
    "JAPAN": "JP",
    "SINGAPORE": "SG",
    "CANADA": "CA",
    "AUSTRALIA": "AU",
    "SWITZERLAND": "CH",
    "NETHERLANDS": "NL",
}


def match_keywords(value: object, table: KeywordTable, default: str = "OTHER") -> str:
    """Return the first label whose keyword occurs in ``value``."""
    label = to_label(value)
    if label is None:
        return default
    for outcome, keywords in table:
        if any(keyword in label for keyword in keywords):
            return outcome
    return default


def keyword_label(
    output: str,
    field: str,
    table: KeywordTable,
    default: str = "OTHER",
) -> DerivedStep:
    """Plan step mapping free text in ``field`` onto a fixed vocabulary."""
    return derived(output, (field,), lambda row: match_keywords(row.get(field), table, default))


def country_code(output: str, field: str) -> DerivedStep:
    """Plan step mapping country names and aliases onto ISO alpha-2 codes."""

    def _compute(row: Row) -> str | None:
        label = to_label(row.get(field))
        if label is None:
            return None
        return COUNTRY_ALIASES.get(label, label)

    return derived(output, (field,), _compute)


def ownership_category(output: str, field: str = "ownership_percentage") -> TierStep:
    return tier(
        output,
        [
            (gte(field, 50), "MAJORITY"),
            (gte(field, 25), "SIGNIFICANT_MINORITY"),
            (gte(field, 10), "MINORITY"),
            (gt(field, 0), "SMALL_STAKE"),
        ],
        "UNKNOWN",
    )


def governance_influence(output: str, field: str = "board_seats") -> TierStep:
    return tier(
        output,
        [
            (gte(field, 2), "STRONG_GOVERNANCE"),
            (eq(field, 1), "BOARD_REPRESENTATION"),
            (eq(field, 0), "NO_BOARD_SEATS"),
        ],
        "UNKNOWN",
    )


def years_elapsed(output: str, start_field: str, end_field: str = AS_OF_FIELD) -> DerivedStep:
    """Calendar year boundaries crossed from ``start_field`` to ``end_field``."""
    return derived(
        output,
        (start_field, end_field),
        lambda row: years_between(to_date(row.get(start_field)), to_date(row.get(end_field))),
    )


def months_elapsed(output: str, start_field: str, end_field: str = AS_OF_FIELD) -> DerivedStep:
    """Calendar month boundaries crossed from ``start_field`` to ``end_field``."""
    return derived(
        output,
        (start_field, end_field),
        lambda row: months_between(to_date(row.get(start_field)), to_date(row.get(end_field))),
    )
