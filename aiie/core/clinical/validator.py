"""
Clinical Input Validator

Thin precondition layer in front of the ranking engine.  Turns raw
mappings (API payloads, case-repository rows) into frozen ClinicalInput /
ImagingOption records and rejects malformed data with InputError.

The ranking engine assumes its inputs went through here and never
raises InputError itself.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Iterable, List, Mapping, Sequence, Type, TypeVar, Union

from aiie.utils.exceptions import InputError
from .base import (
    NO_IMAGING_ID,
    ClinicalInput,
    Duration,
    ImagingOption,
    Modality,
    Severity,
    Sex,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_BOOL_FIELDS = (
    "cancer_history",
    "immunocompromised",
    "recent_trauma",
    "neurologic_deficit",
    "progressive_symptoms",
)

_LIST_FIELDS = (
    "prior_imaging",
    "labs_available",
    "physical_exam_findings",
)


def _parse_enum(enum_cls: Type[E], value: Any, field: str) -> E:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(m.value for m in enum_cls)
    raise InputError(
        f"Invalid {field} {value!r}; expected one of: {allowed}",
        field=field,
        details={"value": repr(value)},
    )


def string_tuple(value: Any, field: str) -> tuple:
    """Strip and keep the non-empty strings of a list field; a bare string is an error."""
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise InputError(f"{field} must be a list of strings", field=field)
    items = []
    for item in value:
        if not isinstance(item, str):
            raise InputError(f"{field} must contain only strings", field=field)
        item = item.strip()
        if item:
            items.append(item)
    return tuple(items)


def _normalise_red_flags(value: Any) -> frozenset:
    # Red flags are matched by name in the rule table, so compare case-insensitively
    return frozenset(flag.lower() for flag in string_tuple(value, "red_flags"))


def validate_clinical_input(data: Union[ClinicalInput, Mapping[str, Any]]) -> ClinicalInput:
    """
    Validate and normalise a clinical presentation.

    Args:
        data: A mapping (e.g. decoded JSON) or an existing ClinicalInput.

    Returns:
        A frozen, normalised ClinicalInput.

    Raises:
        InputError: age missing / not an integer / negative, sex missing or
            unknown, duration or severity outside their enumerations, or a
            list field that is not a list of strings.
    """
    if isinstance(data, ClinicalInput):
        data = data.to_dict()
    if not isinstance(data, Mapping):
        raise InputError("Clinical input must be a mapping", field="clinical_input")

    age = data.get("age")
    if age is None:
        raise InputError("age is required", field="age")
    if isinstance(age, bool) or not isinstance(age, int):
        raise InputError(f"age must be an integer, got {age!r}", field="age")
    if age < 0:
        raise InputError(f"age must be non-negative, got {age}", field="age")

    sex = data.get("sex")
    if sex is None or (isinstance(sex, str) and not sex.strip()):
        raise InputError("sex is required", field="sex")

    flags = {}
    for name in _BOOL_FIELDS:
        value = data.get(name, False)
        if not isinstance(value, bool):
            raise InputError(f"{name} must be a boolean", field=name)
        flags[name] = value

    lists = {name: string_tuple(data.get(name), name) for name in _LIST_FIELDS}

    clinical_input = ClinicalInput(
        age=age,
        sex=_parse_enum(Sex, sex, "sex"),
        chief_complaint=str(data.get("chief_complaint") or "").strip(),
        duration=_parse_enum(Duration, data.get("duration", Duration.ACUTE), "duration"),
        severity=_parse_enum(Severity, data.get("severity", Severity.MODERATE), "severity"),
        red_flags=_normalise_red_flags(data.get("red_flags")),
        **flags,
        **lists,
    )
    logger.debug(
        f"Validated clinical input: age={clinical_input.age}, "
        f"{len(clinical_input.red_flags)} red flag(s)"
    )
    return clinical_input


def validate_imaging_option(data: Union[ImagingOption, Mapping[str, Any]]) -> ImagingOption:
    """Validate a single catalog entry."""
    if isinstance(data, ImagingOption):
        data = data.to_dict()
    if not isinstance(data, Mapping):
        raise InputError("Imaging option must be a mapping", field="imaging_option")

    option_id = data.get("id")
    if not isinstance(option_id, str) or not option_id.strip():
        raise InputError("Imaging option id is required", field="id")

    option_id = option_id.strip()
    modality = _parse_enum(Modality, data.get("modality"), "modality")
    if option_id == NO_IMAGING_ID and modality != Modality.NONE:
        raise InputError(
            f"Id {NO_IMAGING_ID!r} is reserved for the no-imaging option",
            field="id",
        )

    contrast = data.get("contrast", False)
    if contrast is None:
        contrast = False
    if not isinstance(contrast, bool):
        raise InputError(f"contrast must be a boolean for {option_id}", field="contrast")

    try:
        cost = float(data.get("cost_usd", 0) or 0)
        radiation = float(data.get("radiation_msv", 0) or 0)
    except (TypeError, ValueError):
        raise InputError(
            f"cost_usd and radiation_msv must be numeric for {option_id}",
            field="cost_usd",
        ) from None

    if cost < 0:
        raise InputError(f"cost_usd must be >= 0 for {option_id}", field="cost_usd")
    if radiation < 0:
        raise InputError(f"radiation_msv must be >= 0 for {option_id}", field="radiation_msv")
    if modality == Modality.NONE and (cost != 0 or radiation != 0):
        raise InputError(
            f"'none' modality must have zero cost and radiation ({option_id})",
            field="modality",
        )

    return ImagingOption(
        id=option_id,
        modality=modality,
        name=str(data.get("name") or "").strip(),
        cost_usd=cost,
        radiation_msv=radiation,
        contrast=contrast,
    )


def validate_catalog(
    options: Sequence[Union[ImagingOption, Mapping[str, Any]]],
    require_non_empty: bool = False,
) -> List[ImagingOption]:
    """
    Validate an imaging catalog.

    Args:
        options: Catalog entries in display order (order is preserved, it
            is the final tie-break of the ranking).
        require_non_empty: Raise when the catalog is empty.  The engine
            itself accepts an empty catalog and returns no results.

    Raises:
        InputError: duplicate ids, more than one `none` entry, invalid
            entries, or an empty catalog when one is required.
    """
    if options is None:
        raise InputError("Imaging catalog is required", field="imaging_catalog")

    catalog = [validate_imaging_option(o) for o in options]
    if require_non_empty and not catalog:
        raise InputError("Imaging catalog must not be empty", field="imaging_catalog")

    seen = set()
    for option in catalog:
        if option.id in seen:
            raise InputError(f"Duplicate imaging option id: {option.id}", field="id")
        seen.add(option.id)

    if sum(1 for o in catalog if o.modality == Modality.NONE) > 1:
        raise InputError("Catalog may contain at most one 'none' option", field="modality")

    return catalog
