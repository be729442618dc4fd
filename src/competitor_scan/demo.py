"""Demo mode fixtures for frontend testing without calling the provider."""

import os
from functools import lru_cache

from competitor_scan.models import CompetitiveAnalysis, Query, Report
from competitor_scan.rendering import render_markdown


def is_demo_mode_allowed() -> bool:
    """Demo mode is only served in development and staging environments."""
    environment = os.getenv("ENVIRONMENT", "development")
    return environment in ("development", "staging")


@lru_cache(maxsize=1)
def get_demo_analysis() -> CompetitiveAnalysis:
    """Hardcoded analysis returned for any query in demo mode (cached)."""
    return CompetitiveAnalysis(
        overview=(
            "Stripe is a financial infrastructure platform that lets businesses accept payments, "
            "send payouts and manage revenue online. It earns a percentage fee on processed volume "
            "plus subscription revenue from products such as Billing, Connect and Radar."
        ),
        strengths=[
            "Developer-first APIs and documentation that shorten integration time",
            "Broad product suite covering payments, billing, fraud and treasury",
            "Global reach with support for 135+ currencies and local payment methods",
            "Strong brand trust among high-growth internet companies",
        ],
        weaknesses=[
            "Standard pricing is expensive for low-margin, high-volume merchants",
            "Limited in-person and point-of-sale presence compared to incumbents",
            "Account holds and reserves frustrate some small businesses",
        ],
        market_position=(
            "Stripe is the default choice for internet-native businesses and a leading online payments "
            "processor, competing with Adyen in enterprise and with PayPal and Square among smaller merchants."
        ),
        recommendations=[
            "Win price-sensitive merchants with transparent volume-based pricing",
            "Bundle in-person and online payments for omnichannel retailers",
            "Offer white-glove onboarding and faster payouts to small businesses",
            "Specialize in verticals Stripe serves generically, such as healthcare or B2B invoicing",
        ],
    )


def get_demo_report(query: Query) -> Report:
    """Demo report titled with the caller's (already validated) query."""
    analysis = get_demo_analysis()
    return Report(query=query, analysis=analysis, markdown=render_markdown(query, analysis))
