"""Counterparties consolidated across CRM, portfolio, and accounting systems.

Rows are folded into one record per normalized counterparty name before
classification, so a counterparty known to several systems yields one
output with its source coverage recorded.
"""

from __future__ import annotations

from core.constants import VENDOR_CRM
from entity_models.base import EntityModel, completeness
from entity_models.standardization import months_elapsed
from transforms.counterparty_consolidation import consolidate_counterparties
from transforms.predicates import all_of, eq, gte, is_null, isin, lte
from transforms.rule_cascade import ClassificationPlan, FieldComponent, points, score, tier

TYPE = "counterparty_type"
CATEGORY = "counterparty_category"
STRONG = eq("relationship_strength", "STRONG")
PRIORITY = "relationship_priority"
RECENCY = "relationship_recency"

PLAN = ClassificationPlan(
    "counterparties",
    [
        tier(
            CATEGORY,
            [
                (isin(TYPE, "LEGAL_COUNSEL", "AUDITOR"), "PROFESSIONAL_SERVICES"),
                (eq(TYPE, "SERVICE_PROVIDER"), "ADVISORY_SERVICES"),
                (isin(TYPE, "LENDER", "CO_INVESTOR"), "FINANCIAL_PARTNERS"),
                (eq(TYPE, "VENDOR"), "OPERATIONAL_VENDORS"),
            ],
            "OTHER",
        ),
        score(
            "relationship_importance_score",
            [
                points(
                    "importance_points",
                    [
                        (all_of(isin(TYPE, "LEGAL_COUNSEL", "AUDITOR", "LENDER"), STRONG), 5),
                        (isin(TYPE, "LEGAL_COUNSEL", "AUDITOR", "LENDER"), 4),
                        (all_of(eq(TYPE, "CO_INVESTOR"), STRONG), 4),
                        (eq(TYPE, "CO_INVESTOR"), 3),
                        (all_of(eq(TYPE, "SERVICE_PROVIDER"), STRONG), 3),
                        (eq(TYPE, "SERVICE_PROVIDER"), 2),
                        (eq(TYPE, "VENDOR"), 1),
                    ],
                    0,
                )
            ],
        ),
        tier(
            "engagement_frequency",
            [
                (eq("interaction_frequency", "DAILY"), "HIGH_FREQUENCY"),
                (eq("interaction_frequency", "WEEKLY"), "MEDIUM_FREQUENCY"),
                (isin("interaction_frequency", "MONTHLY", "QUARTERLY"), "LOW_FREQUENCY"),
                (isin("interaction_frequency", "ANNUALLY", "AS_NEEDED"), "OCCASIONAL"),
            ],
            "UNKNOWN",
        ),
        months_elapsed("months_since_interaction", "last_interaction_date"),
        tier(
            RECENCY,
            [
                (is_null("last_interaction_date"), "NO_RECENT_ACTIVITY"),
                (lte("months_since_interaction", 3), "RECENT"),
                (lte("months_since_interaction", 12), "MODERATE"),
                (lte("months_since_interaction", 24), "STALE"),
            ],
            "INACTIVE",
        ),
        completeness(
            "completeness_score",
            (
                "counterparty_name",
                TYPE,
                "primary_contact_name",
                "primary_contact_email",
                "country_code",
                "relationship_status",
                "last_interaction_date",
            ),
        ),
        tier(
            "source_coverage",
            [
                (gte("source_system_count", 3), "COMPREHENSIVE"),
                (eq("source_system_count", 2), "PARTIAL"),
                (eq("source_system_count", 1), "MINIMAL"),
            ],
            "NO_COVERAGE",
        ),
        score(
            "overall_relationship_value",
            [
                FieldComponent("relationship_importance_score", 0.4),
                points(
                    "recency_points",
                    [
                        (eq(RECENCY, "RECENT"), 3),
                        (eq(RECENCY, "MODERATE"), 2),
                        (eq(RECENCY, "STALE"), 1),
                    ],
                    0,
                    0.3,
                ),
                points(
                    "frequency_points",
                    [
                        (eq("engagement_frequency", "HIGH_FREQUENCY"), 3),
                        (eq("engagement_frequency", "MEDIUM_FREQUENCY"), 2),
                        (eq("engagement_frequency", "LOW_FREQUENCY"), 1),
                    ],
                    0,
                    0.2,
                ),
                points(
                    "completeness_points",
                    [(gte("completeness_score", 80), 2), (gte("completeness_score", 60), 1)],
                    0,
                    0.1,
                ),
            ],
            total_weight=1.0,
        ),
        tier(
            PRIORITY,
            [
                (
                    all_of(
                        gte("overall_relationship_value", 4.0),
                        isin(CATEGORY, "PROFESSIONAL_SERVICES", "FINANCIAL_PARTNERS"),
                    ),
                    "HIGH_PRIORITY",
                ),
                (
                    all_of(
                        gte("overall_relationship_value", 3.0),
                        isin(
                            CATEGORY,
                            "PROFESSIONAL_SERVICES",
                            "ADVISORY_SERVICES",
                            "FINANCIAL_PARTNERS",
                        ),
                    ),
                    "MEDIUM_PRIORITY",
                ),
                (gte("overall_relationship_value", 2.0), "LOW_PRIORITY"),
            ],
            "MONITOR_ONLY",
        ),
        tier(
            "engagement_strategy",
            [
                (
                    all_of(eq(PRIORITY, "HIGH_PRIORITY"), isin(RECENCY, "STALE", "INACTIVE")),
                    "IMMEDIATE_OUTREACH",
                ),
                (eq(PRIORITY, "HIGH_PRIORITY"), "REGULAR_ENGAGEMENT"),
                (
                    all_of(eq(PRIORITY, "MEDIUM_PRIORITY"), eq(RECENCY, "RECENT")),
                    "MAINTAIN_CONTACT",
                ),
                (eq(PRIORITY, "MEDIUM_PRIORITY"), "PERIODIC_OUTREACH"),
                (eq(PRIORITY, "LOW_PRIORITY"), "MONITOR_ACTIVITY"),
            ],
            "NO_ACTION_REQUIRED",
        ),
        tier(
            "data_quality_rating",
            [
                (
                    all_of(
                        gte("completeness_score", 85),
                        isin("source_coverage", "COMPREHENSIVE", "PARTIAL"),
                    ),
                    "HIGH",
                ),
                (
                    all_of(
                        gte("completeness_score", 65),
                        isin("source_coverage", "COMPREHENSIVE", "PARTIAL", "MINIMAL"),
                    ),
                    "MEDIUM",
                ),
            ],
            "LOW",
        ),
    ],
)

MODEL = EntityModel(
    name="counterparties",
    description="Counterparties consolidated across vendors with relationship priority",
    id_field="counterparty_id",
    default_vendor=VENDOR_CRM,
    primary_field="canonical_counterparty_id",
    plan=PLAN,
    fingerprint_fields=(
        "canonical_counterparty_id",
        "counterparty_name",
        TYPE,
        "primary_contact_name",
        "primary_contact_email",
        "relationship_status",
        "relationship_strength",
        "last_interaction_date",
        "last_modified_date",
    ),
    date_fields=("last_interaction_date", "created_date", "last_modified_date"),
    numeric_fields=("source_system_count", "source_record_count"),
    label_fields=("relationship_strength", "interaction_frequency", "relationship_status"),
    consolidator=consolidate_counterparties,
)
