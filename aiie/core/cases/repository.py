"""
Case Repository

Read-only source of teaching cases.  The session layer only needs
`get_case(case_id)`; where cases actually live (database, CMS, fixture
files) is the implementer's concern.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from aiie.utils.exceptions import CaseNotFoundError, InputError
from aiie.core.clinical.base import ClinicalInput, ImagingOption
from aiie.core.clinical.validator import string_tuple, validate_catalog, validate_clinical_input

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaseRecord:
    """
    One teaching case.

    `optimal_imaging_ids` is the author's answer key and is shown as
    feedback; grading always uses the engine ranking.  An empty tuple
    means "no imaging" is the intended answer.
    """
    id: str
    title: str
    clinical_input: ClinicalInput
    imaging_catalog: Tuple[ImagingOption, ...]
    optimal_imaging_ids: Tuple[str, ...] = ()
    hints: Tuple[str, ...] = ()
    explanation: str = ""
    teaching_points: Tuple[str, ...] = ()
    specialty: str = ""
    difficulty: str = "beginner"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CaseRecord":
        """Build and validate a case from a plain mapping."""
        case_id = data.get("id")
        if not isinstance(case_id, str) or not case_id:
            raise InputError("Case id is required", field="id")
        return cls(
            id=case_id,
            title=data.get("title", case_id),
            clinical_input=validate_clinical_input(data.get("clinical_input") or {}),
            imaging_catalog=tuple(validate_catalog(data.get("imaging_catalog") or [], require_non_empty=True)),
            optimal_imaging_ids=string_tuple(data.get("optimal_imaging_ids"), "optimal_imaging_ids"),
            hints=string_tuple(data.get("hints"), "hints"),
            explanation=data.get("explanation", ""),
            teaching_points=string_tuple(data.get("teaching_points"), "teaching_points"),
            specialty=data.get("specialty", ""),
            difficulty=data.get("difficulty", "beginner"),
        )

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "specialty": self.specialty,
            "difficulty": self.difficulty,
            "chief_complaint": self.clinical_input.chief_complaint,
            "hint_count": len(self.hints),
            "option_count": len(self.imaging_catalog),
        }


class CaseRepository(ABC):
    """Port to wherever cases are stored."""

    @abstractmethod
    def get_case(self, case_id: str) -> CaseRecord:
        """Return a case or raise CaseNotFoundError."""

    @abstractmethod
    def list_cases(self) -> List[CaseRecord]:
        """Return all cases in display order."""


class InMemoryCaseRepository(CaseRepository):
    """Dict-backed repository, used by the API service and tests."""

    def __init__(self, cases: Iterable[CaseRecord] = ()):
        self._cases: Dict[str, CaseRecord] = {}
        for case in cases:
            self.add(case)

    def add(self, case: CaseRecord) -> None:
        if case.id in self._cases:
            raise InputError(f"Duplicate case id: {case.id}", field="id")
        self._cases[case.id] = case

    def get_case(self, case_id: str) -> CaseRecord:
        try:
            return self._cases[case_id]
        except KeyError:
            raise CaseNotFoundError(case_id) from None

    def list_cases(self) -> List[CaseRecord]:
        return list(self._cases.values())

    @classmethod
    def from_dicts(cls, rows: Iterable[Mapping[str, Any]]) -> "InMemoryCaseRepository":
        repo = cls(CaseRecord.from_dict(row) for row in rows)
        logger.info(f"Loaded {len(repo.list_cases())} case(s) into memory")
        return repo
