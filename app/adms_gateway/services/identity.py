from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from adms_gateway.services.store import PERSON_LOOKUP_FIELDS
from people.models import Person

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionStrategy:
    name: str
    lookup: Callable[[str], Person | None]


@dataclass(frozen=True)
class Resolution:
    person: Person
    matched_by: str


def default_strategies(store) -> list[ResolutionStrategy]:
    # Older enrollments may only match on the later fields.
    return [
        ResolutionStrategy(field_name, lambda value, field_name=field_name: store.find_person_by_field(field_name, value))
        for field_name in PERSON_LOOKUP_FIELDS
    ]


def resolve_person(template_id: str, strategies: Sequence[ResolutionStrategy]) -> Resolution | None:
    template_id = (template_id or "").strip()
    if not template_id:
        return None

    for strategy in strategies:
        person = strategy.lookup(template_id)
        if person is not None:
            if strategy is not strategies[0]:
                logger.info(
                    "Person resolved by fallback identifier",
                    extra={"template_id": template_id, "matched_by": strategy.name},
                )
            return Resolution(person=person, matched_by=strategy.name)

    return None
