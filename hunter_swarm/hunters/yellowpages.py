"""General business-directory hunter: industry searches and broad samples."""

from __future__ import annotations

import random
import re
from typing import Any, Iterable

from .base import BaseHunter, HuntQuery

GENERAL_QUERY_CAP = 1000

INDUSTRY_LOCATIONS = (
    ("Toronto", "ON"),
    ("Vancouver", "BC"),
    ("Montreal", "QC"),
    ("Calgary", "AB"),
    ("Edmonton", "AB"),
    ("Ottawa", "ON"),
    ("Winnipeg", "MB"),
    ("Halifax", "NS"),
)
GENERAL_LOCATIONS = INDUSTRY_LOCATIONS[:6]

GENERAL_INDUSTRIES = ("Retail", "Restaurant", "Real Estate", "Healthcare", "Education", "Manufacturing")

COMPANY_TYPES = (
    "Solutions",
    "Services",
    "Consulting",
    "Group",
    "Partners",
    "Associates",
    "Professionals",
    "Experts",
    "Specialists",
    "Innovations",
)
NAME_PREFIXES = ("Maple", "Northern", "Canadian", "Royal", "Pacific", "Atlantic", "Prairie", "Mountain", "Lake", "River")
NAME_SUFFIXES = ("Enterprises", "Corporation", "Company", "Group", "Industries", "Holdings", "Ventures", "Partners")


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


class YellowPagesHunter(BaseHunter):
    name = "yellowpages"
    supported_kinds = ("industry", "general", "geography")

    def hunt(self, query: HuntQuery, limit: int) -> Iterable[dict[str, Any]]:
        rng = random.Random(f"{self.settings.seed}:{self.name}:{query.kind}:{query.value}:{query.offset}")
        if query.kind == "industry":
            if not query.value:
                raise ValueError("industry queries need an industry name")
            return [
                self._industry_business(rng, query.value, query.offset + index)
                for index in range(limit)
            ]
        locations = GENERAL_LOCATIONS
        if query.kind == "geography" and query.value:
            locations = tuple(
                loc for loc in INDUSTRY_LOCATIONS if loc[1] == query.value.upper()
            )
            if not locations:
                return []
        count = min(limit, GENERAL_QUERY_CAP)
        return [
            self._general_business(rng, query.offset + index, locations) for index in range(count)
        ]

    @staticmethod
    def _industry_business(rng: random.Random, industry: str, index: int) -> dict[str, Any]:
        city, province = rng.choice(INDUSTRY_LOCATIONS)
        roll = rng.random()
        if roll > 0.7:
            employees = 100 + rng.randrange(900)
        elif roll > 0.4:
            employees = 20 + rng.randrange(80)
        else:
            employees = 5 + rng.randrange(15)
        number = index + 1
        slug = _slug(industry)
        return {
            "name": f"{industry} {rng.choice(COMPANY_TYPES)} {number}",
            "description": f"Professional {industry.lower()} services in {city}",
            "website": f"https://www.{slug}-company-{number}.ca",
            "email": f"info@{slug}-company-{number}.ca",
            "phone": f"{rng.randint(2, 9)}{rng.randint(10, 99)}-555-{1000 + index % 9000:04d}",
            "address": f"{rng.randint(1, 9999)} Business Street",
            "city": city,
            "province": province,
            "industry": industry,
            "employee_count": employees,
            "revenue_estimate": round(employees * (50_000 + rng.random() * 150_000), 2),
            "year_established": 1980 + rng.randrange(44),
            "government_contractor": rng.random() > 0.7,
        }

    @staticmethod
    def _general_business(
        rng: random.Random, index: int, locations: tuple[tuple[str, str], ...]
    ) -> dict[str, Any]:
        industry = rng.choice(GENERAL_INDUSTRIES)
        city, province = rng.choice(locations)
        number = index + 1
        return {
            "name": f"{rng.choice(NAME_PREFIXES)} {rng.choice(NAME_SUFFIXES)} {number}",
            "description": f"Local {industry.lower()} business",
            "website": f"https://www.business{number}.ca",
            "email": f"contact@business{number}.ca",
            "phone": f"416-{555 + index // 9000:03d}-{1000 + index % 9000:04d}",
            "address": f"{rng.randint(1, 9999)} Main Street",
            "city": city,
            "province": province,
            "industry": industry,
            "employee_count": 5 + rng.randrange(45),
            "revenue_estimate": round(100_000 + rng.random() * 900_000, 2),
            "year_established": 1990 + rng.randrange(34),
        }


__all__ = ["GENERAL_QUERY_CAP", "YellowPagesHunter"]
