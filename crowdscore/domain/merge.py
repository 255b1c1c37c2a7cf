"""
Duplicate Merge - Consolidating a Duplicate Group
==================================================

Each mergeable field has exactly one strategy:

- SELECT: the admin picks which member supplies the value
  (the first member by default)
- CONCATENATE: every member's non-empty text, in group order
- AVERAGE: mean over all members

The merged record is always Approved and gets a fresh id. Deleting the
original members is the caller's job.
"""

from enum import Enum
from typing import Dict, List, Optional

from .errors import MergeError
from .models import ProjectDelay, SubmissionStatus

CONCAT_SEPARATOR = "\n---\n"


class MergeStrategy(Enum):
    SELECT = "select"
    CONCATENATE = "concatenate"
    AVERAGE = "average"


MERGE_FIELDS: Dict[str, MergeStrategy] = {
    "submitter_email": MergeStrategy.SELECT,
    "company_name": MergeStrategy.SELECT,
    "project_name": MergeStrategy.SELECT,
    "crowdfunding_link": MergeStrategy.SELECT,
    "promised_date": MergeStrategy.SELECT,
    "actual_date": MergeStrategy.SELECT,
    "would_buy_again": MergeStrategy.SELECT,
    "comment": MergeStrategy.CONCATENATE,
    "company_reply": MergeStrategy.CONCATENATE,
    "user_rebuttal": MergeStrategy.CONCATENATE,
    "rating": MergeStrategy.AVERAGE,
}

SELECTABLE_FIELDS: List[str] = [
    name for name, strategy in MERGE_FIELDS.items() if strategy is MergeStrategy.SELECT
]


def field_options(group: List[ProjectDelay], field_name: str) -> List[tuple]:
    """Distinct non-empty values of a selectable field as ``(value, member_id)``.

    The last member holding a value wins its option, so each distinct value
    appears once.
    """
    options: Dict[object, str] = {}
    for member in group:
        value = getattr(member, field_name)
        if value is None or value == "":
            continue
        options[value] = member.id
    return list(options.items())


def _concatenate(group: List[ProjectDelay], field_name: str) -> Optional[str]:
    parts = [getattr(m, field_name) for m in group if getattr(m, field_name)]
    return CONCAT_SEPARATOR.join(parts) if parts else None


def _average(group: List[ProjectDelay], field_name: str) -> float:
    values = [getattr(m, field_name) for m in group]
    return round(sum(values) / len(values), 2) if values else 0.0


def validate_selections(group: List[ProjectDelay], selections: Dict[str, str]) -> Dict[str, str]:
    """Fill defaults and reject unknown fields or foreign ids."""
    if not group:
        raise MergeError("Nenhum envio selecionado para mesclar.")

    member_ids = {m.id for m in group}
    resolved = {name: group[0].id for name in SELECTABLE_FIELDS}
    for name, member_id in selections.items():
        strategy = MERGE_FIELDS.get(name)
        if strategy is None:
            raise MergeError(f"Campo desconhecido: {name}")
        if strategy is not MergeStrategy.SELECT:
            raise MergeError(f"O campo {name} não pode ser selecionado.")
        if member_id not in member_ids:
            raise MergeError(f"Envio {member_id} não pertence ao grupo.")
        resolved[name] = member_id
    return resolved


def merge_submissions(group: List[ProjectDelay], selections: Dict[str, str], new_id: str) -> ProjectDelay:
    """Build the consolidated record for ``group``.

    Args:
        group: Duplicate members in display order.
        selections: field name -> member id for SELECT fields. Missing
            fields fall back to the first member.
        new_id: Id of the merged record.
    """
    resolved = validate_selections(group, selections)
    by_id = {m.id: m for m in group}

    values = {}
    for name, strategy in MERGE_FIELDS.items():
        if strategy is MergeStrategy.SELECT:
            values[name] = getattr(by_id[resolved[name]], name)
        elif strategy is MergeStrategy.CONCATENATE:
            values[name] = _concatenate(group, name)
        else:
            values[name] = _average(group, name)

    return ProjectDelay(id=new_id, status=SubmissionStatus.APPROVED, **values)
