"""Federal-contractor hunter driven by a contractor-type template."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Iterable

from .base import BaseHunter, HuntQuery


@dataclass(frozen=True, slots=True)
class ContractorType:
    label: str
    average_value: float


CONTRACTOR_TYPES = (
    ContractorType("Defence Contractor", 50_000_000),
    ContractorType("IT Services", 10_000_000),
    ContractorType("Consulting Services", 5_000_000),
    ContractorType("Construction", 25_000_000),
    ContractorType("Engineering Services", 15_000_000),
    ContractorType("Healthcare Services", 8_000_000),
    ContractorType("Transportation", 12_000_000),
    ContractorType("Facilities Management", 6_000_000),
    ContractorType("Professional Services", 4_000_000),
    ContractorType("Scientific Research", 20_000_000),
)

DEPARTMENTS = (
    "Department of National Defence",
    "Public Services and Procurement Canada",
    "Innovation, Science and Economic Development Canada",
    "Health Canada",
    "Transport Canada",
    "Employment and Social Development Canada",
    "Canada Revenue Agency",
    "Natural Resources Canada",
    "Environment and Climate Change Canada",
    "Immigration, Refugees and Citizenship Canada",
)

LOCATIONS = (
    ("Ottawa", "ON"),
    ("Toronto", "ON"),
    ("Montreal", "QC"),
    ("Vancouver", "BC"),
    ("Calgary", "AB"),
    ("Halifax", "NS"),
    ("Winnipeg", "MB"),
)

CONTRACT_EXPIRIES = ("2026-03-31", "2025-12-31")
REVENUE_PER_EMPLOYEE = 200_000


class GovernmentHunter(BaseHunter):
    """Generate federal contractors; every one is in a mandated sector."""

    name = "government"
    supported_kinds = ("default", "geography")

    def hunt(self, query: HuntQuery, limit: int) -> Iterable[dict[str, Any]]:
        rng = random.Random(f"{self.settings.seed}:{self.name}:{query.kind}:{query.value}:{query.offset}")
        locations = LOCATIONS
        if query.kind == "geography" and query.value:
            locations = tuple(loc for loc in LOCATIONS if loc[1] == query.value.upper())
            if not locations:
                return []
        return [
            self._contractor(rng, query.offset + index, locations) for index in range(limit)
        ]

    @staticmethod
    def _contractor(
        rng: random.Random, index: int, locations: tuple[tuple[str, str], ...]
    ) -> dict[str, Any]:
        kind = rng.choice(CONTRACTOR_TYPES)
        city, province = rng.choice(locations)
        contract_value = kind.average_value * (0.5 + rng.random() * 1.5)
        number = index + 1
        departments = [rng.choice(DEPARTMENTS) for _ in CONTRACT_EXPIRIES]
        return {
            "name": f"{kind.label} Corporation {number}",
            "description": f"Federal {kind.label.lower()} contractor",
            "website": f"https://www.federal-contractor-{number}.ca",
            "email": f"contracts@contractor{number}.ca",
            "phone": f"613-{555 + index // 9000:03d}-{1000 + index % 9000:04d}",
            "address": f"{rng.randint(1, 9999)} Government Plaza",
            "city": city,
            "province": province,
            "industry": kind.label,
            "employee_count": max(50, int(contract_value / REVENUE_PER_EMPLOYEE)),
            "revenue_estimate": round(contract_value * 1.2, 2),
            "year_established": 1970 + rng.randrange(40),
            "government_contractor": True,
            "mandatory_industry": True,
            "current_compliance": round(rng.random() * 4, 2),
            "contract_refs": [
                f"{department} ({expiry})"
                for department, expiry in zip(departments, CONTRACT_EXPIRIES)
            ],
            "priority_score": 100,
        }


__all__ = ["CONTRACTOR_TYPES", "DEPARTMENTS", "GovernmentHunter"]
