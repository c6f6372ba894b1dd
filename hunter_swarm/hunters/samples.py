"""Built-in certified-business placeholders returned when a live source fails."""

from __future__ import annotations

import copy
from typing import Any

SAMPLE_BUSINESSES: tuple[dict[str, Any], ...] = (
    {
        "name": "Indigenous Tech Solutions Inc.",
        "description": "Leading Indigenous-owned technology company specializing in software development",
        "website": "https://example-indigenous-tech.ca",
        "email": "contact@indigenous-tech.ca",
        "phone": "416-555-0100",
        "address": "123 Bay Street",
        "city": "Toronto",
        "province": "ON",
        "industry": "Information Technology",
        "certifications": ["CCAB Certified Gold"],
        "ownership_percentage": 100,
        "indigenous_owned": True,
        "indigenous_verified": True,
    },
    {
        "name": "First Nations Construction Group",
        "description": "Full-service construction company with 30+ years experience",
        "website": "https://example-fn-construction.ca",
        "email": "info@fn-construction.ca",
        "phone": "604-555-0200",
        "address": "456 Granville Street",
        "city": "Vancouver",
        "province": "BC",
        "industry": "Construction",
        "certifications": ["CCAB Certified Silver"],
        "ownership_percentage": 75,
        "indigenous_owned": True,
        "indigenous_verified": True,
    },
    {
        "name": "Métis Environmental Consulting",
        "description": "Environmental assessment and consulting services",
        "website": "https://example-metis-env.ca",
        "email": "consult@metis-env.ca",
        "phone": "403-555-0300",
        "address": "789 Centre Street",
        "city": "Calgary",
        "province": "AB",
        "industry": "Environmental Services",
        "certifications": ["CCAB Certified"],
        "ownership_percentage": 60,
        "indigenous_owned": True,
        "indigenous_verified": True,
    },
)


def sample_businesses() -> list[dict[str, Any]]:
    return copy.deepcopy(list(SAMPLE_BUSINESSES))


__all__ = ["SAMPLE_BUSINESSES", "sample_businesses"]
