"""Multi-key deduplication and field-wise merging of candidate records.

There is no reliable global identifier across sources, so every candidate is
indexed under several derived keys.  Keys are checked in a fixed order and the
first hit decides the match; that order is the tie-break policy and must stay
stable for runs to be reproducible:

1. ``name_city``    normalised name + city
2. ``domain``       website hostname without ``www.``
3. ``email``        e-mail domain
4. ``phone``        digits, North American country code dropped
5. ``name_address`` normalised name + street address
6. ``name``         normalised name alone, only when none of the above exist

Known limitation: a hit on any single key is treated as identity.  Two distinct
businesses sharing an office phone line or an e-mail provider domain are merged
with no confidence score and no manual-review path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Sequence

import structlog

from ..normalize import extract_domain, extract_email_domain, normalize_name, normalize_phone
from ..records import CandidateRecord, CanonicalRecord

KEY_ORDER = ("name_city", "domain", "email", "phone", "name_address", "name")

SCALAR_FIELDS = (
    "description",
    "website",
    "email",
    "phone",
    "address",
    "city",
    "province",
    "postal_code",
    "industry",
    "year_established",
    "linkedin_url",
    "current_compliance",
    "ownership_percentage",
)
MAX_FIELDS = ("employee_count", "revenue_estimate")
FLAG_FIELDS = (
    "indigenous_owned",
    "indigenous_verified",
    "mandatory_industry",
    "government_contractor",
    "claimed",
    "verified",
)
SET_FIELDS = ("certifications", "contract_refs")


@dataclass(frozen=True, slots=True)
class DedupKey:
    kind: str
    value: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.value}"


@dataclass(slots=True)
class DedupReport:
    """Summary of the last ``deduplicate`` call."""

    input_count: int = 0
    output_count: int = 0
    matches_by_key: dict[str, int] = field(default_factory=dict)

    @property
    def duplicates(self) -> int:
        return self.input_count - self.output_count


def derive_keys(record: CandidateRecord) -> list[DedupKey]:
    """Return the record's dedup keys in lookup order."""

    keys: list[DedupKey] = []
    name = normalize_name(record.name)
    if name and record.city:
        city = normalize_name(record.city)
        if city:
            keys.append(DedupKey("name_city", f"{name}_{city}"))
    domain = extract_domain(record.website)
    if domain:
        keys.append(DedupKey("domain", domain))
    email_domain = extract_email_domain(record.email)
    if email_domain:
        keys.append(DedupKey("email", email_domain))
    phone = normalize_phone(record.phone)
    if phone:
        keys.append(DedupKey("phone", phone))
    if name and record.address:
        address = normalize_name(record.address)
        if address:
            keys.append(DedupKey("name_address", f"{name}_{address}"))
    if not keys and name:
        keys.append(DedupKey("name", name))
    return keys


def identity_of(record: CandidateRecord) -> str:
    """Composite identity used for the final uniqueness pass."""

    parts = [
        normalize_name(record.name),
        normalize_name(record.city),
        normalize_name(record.province),
        extract_domain(record.website),
        normalize_phone(record.phone),
    ]
    return "_".join(part for part in parts if part)


def merge_records(existing: CanonicalRecord, incoming: CandidateRecord) -> CanonicalRecord:
    """Merge ``incoming`` into ``existing`` in place and return it.

    Non-empty scalars already present win; numeric estimates keep the larger
    value; flags are OR-ed; set-valued fields are unioned.
    """

    for name in SCALAR_FIELDS:
        current = getattr(existing, name)
        if current in (None, ""):
            value = getattr(incoming, name)
            if value not in (None, ""):
                setattr(existing, name, value)
    for name in MAX_FIELDS:
        current = getattr(existing, name)
        value = getattr(incoming, name)
        if value is not None and (current is None or value > current):
            setattr(existing, name, value)
    for name in FLAG_FIELDS:
        setattr(existing, name, bool(getattr(existing, name) or getattr(incoming, name)))
    for name in SET_FIELDS:
        setattr(existing, name, set(getattr(existing, name)) | set(getattr(incoming, name)))

    # A merged record stays a placeholder only if every contributor was one.
    existing.synthetic = existing.synthetic and incoming.synthetic
    incoming_sources = (
        incoming.sources if isinstance(incoming, CanonicalRecord) else {incoming.source}
    )
    existing.sources = existing.sources | {s for s in incoming_sources if s}
    existing.merge_count += incoming.merge_count if isinstance(incoming, CanonicalRecord) else 1
    existing.last_merged_at = datetime.now(timezone.utc)
    existing.priority_score = max(existing.priority_score, incoming.priority_score)
    return existing


class DeduplicationEngine:
    """Collapse candidates from one or more hunters into canonical records."""

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self.logger = logger or structlog.get_logger("hunter_swarm.dedup")
        self.last_report = DedupReport()

    def deduplicate(self, candidates: Iterable[CandidateRecord]) -> list[CanonicalRecord]:
        report = DedupReport()
        index: dict[DedupKey, CanonicalRecord] = {}
        order: list[CanonicalRecord] = []

        for candidate in candidates:
            report.input_count += 1
            keys = derive_keys(candidate)
            match: CanonicalRecord | None = None
            for key in keys:
                match = index.get(key)
                if match is not None:
                    report.matches_by_key[key.kind] = report.matches_by_key.get(key.kind, 0) + 1
                    break
            if match is not None:
                merge_records(match, candidate)
                target = match
            else:
                target = CanonicalRecord.from_candidate(candidate)
                order.append(target)
            # Register under every key so transitive identities collapse later.
            for key in keys:
                index.setdefault(key, target)

        result = self._finalise(order)
        report.output_count = len(result)
        self.last_report = report
        if report.input_count:
            self.logger.debug(
                "dedup_complete",
                input=report.input_count,
                output=report.output_count,
                duplicates=report.duplicates,
                matches=report.matches_by_key,
            )
        return result

    @staticmethod
    def _finalise(records: Sequence[CanonicalRecord]) -> list[CanonicalRecord]:
        """Reduce to one record per composite identity, first seen wins."""

        final: dict[str, CanonicalRecord] = {}
        seen_objects: set[int] = set()
        for record in records:
            if id(record) in seen_objects:
                continue
            seen_objects.add(id(record))
            identity = identity_of(record) or f"object_{id(record)}"
            existing = final.get(identity)
            if existing is None:
                final[identity] = record
            else:
                merge_records(existing, record)
        return list(final.values())


__all__ = [
    "DedupKey",
    "DedupReport",
    "DeduplicationEngine",
    "KEY_ORDER",
    "derive_keys",
    "identity_of",
    "merge_records",
]
