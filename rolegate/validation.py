"""Schema validation for untrusted role lists.

Turns whatever the session store (or a caller) holds into a well-formed
:class:`~rolegate.models.RoleSet`.  The posture is fail-closed: nothing in
here raises for malformed input, and a broken record is indistinguishable
from a caller with no roles.

Element level
    Each element must be a mapping with an integer-like ``id`` in
    ``1..999`` and a ``name`` (or legacy ``nombre``) from the role
    hierarchy.  Anything else is dropped; the remaining elements survive.

Top level
    A value that cannot be decoded, or is not a sequence of records,
    yields the empty set.  When the value came from an identity source the
    role record is cleared as well, so the same corrupt value is never
    re-read.  This purge is a side effect of :func:`validate` with
    ``source=...`` and is reported in :class:`ValidationReport`.

Duplicate ids keep the first record seen.

Every pass logs one diagnostic record on ``rolegate.validation`` carrying
counts and flags only, never the payload.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from rolegate.config import settings
from rolegate.models import EMPTY_ROLE_SET, MAX_ROLE_ID, Role, RoleSet
from rolegate.rbac import ROLE_IDS, parse_role_name

if TYPE_CHECKING:
    from rolegate.storage.identity_source import IdentitySourceAdapter

logger = logging.getLogger("rolegate.validation")

_DIGITS = re.compile(r"^\s*\d{1,3}\s*$")

# Reasons reported on the diagnostic event.
REASON_OK = "ok"
REASON_ABSENT = "absent"
REASON_PARTIAL = "partial"
REASON_UNDECODABLE = "undecodable"
REASON_NOT_A_SEQUENCE = "not_a_sequence"

PATH_IDENTITY = "identity"
PATH_EXTERNAL = "external"


@dataclass(frozen=True)
class ValidationReport:
    """Metadata of one validation pass; safe to log."""

    path: str
    reason: str
    total: int = 0
    accepted: int = 0
    dropped: int = 0
    duplicates: int = 0
    purged: bool = False

    @property
    def top_level_failure(self) -> bool:
        return self.reason in (REASON_UNDECODABLE, REASON_NOT_A_SEQUENCE)

    def as_log_extra(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "reason": self.reason,
            "total": self.total,
            "accepted": self.accepted,
            "dropped": self.dropped,
            "duplicates": self.duplicates,
            "purged": self.purged,
        }


def _coerce_id(value: Any) -> int | None:
    """Return *value* as an int when it is integer-like, else ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        role_id = value
    elif isinstance(value, float) and value.is_integer():
        role_id = int(value)
    elif isinstance(value, str) and _DIGITS.match(value):
        role_id = int(value)
    else:
        return None
    if not 0 < role_id <= MAX_ROLE_ID:
        return None
    return role_id


def coerce_role(item: Any, *, enforce_role_ids: bool = False) -> Role | None:
    """Validate one raw element; ``None`` means it must be dropped."""
    if isinstance(item, Role):
        role_id, name = item.id, item.name
    elif isinstance(item, Mapping):
        role_id = _coerce_id(item.get("id"))
        name = parse_role_name(item["name"] if "name" in item else item.get("nombre"))
    else:
        return None
    if role_id is None or name is None:
        return None
    if enforce_role_ids and ROLE_IDS[name] != role_id:
        return None
    return Role(id=role_id, name=name)


def _decode(raw: Any) -> tuple[Any, str | None]:
    """Decode serialized input; returns ``(value, failure_reason)``."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return None, REASON_UNDECODABLE
    if isinstance(raw, str):
        try:
            return json.loads(raw), None
        except (ValueError, RecursionError):
            return None, REASON_UNDECODABLE
    return raw, None


def _is_record_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def purge_role_record(source: IdentitySourceAdapter) -> bool:
    """Clear the role record of *source*; returns whether the clear succeeded."""
    try:
        source.clear_roles()
    except Exception:
        logger.exception("Failed to purge corrupt role record", extra={"path": PATH_IDENTITY})
        return False
    return True


def _emit(report: ValidationReport) -> None:
    extra = report.as_log_extra()
    if report.top_level_failure:
        logger.warning("Role record rejected (%s)", report.reason, extra=extra)
    elif report.dropped or report.duplicates:
        logger.warning(
            "Dropped %d malformed and %d duplicate role entries",
            report.dropped,
            report.duplicates,
            extra=extra,
        )
    else:
        logger.debug("Role record validated (%s)", report.reason, extra=extra)


def validate_with_report(
    raw: Any,
    *,
    source: IdentitySourceAdapter | None = None,
    enforce_role_ids: bool | None = None,
    path: str | None = None,
) -> tuple[RoleSet, ValidationReport]:
    """Validate *raw* and return the role set together with its report.

    *source* marks the identity path: on a top-level failure its role
    record is cleared.  External callers leave it ``None``.
    """
    if path is None:
        path = PATH_IDENTITY if source is not None else PATH_EXTERNAL
    if enforce_role_ids is None:
        enforce_role_ids = settings.enforce_role_ids

    if raw is None:
        report = ValidationReport(path=path, reason=REASON_ABSENT)
        _emit(report)
        return EMPTY_ROLE_SET, report

    value, failure = _decode(raw)
    if failure is None and not _is_record_sequence(value):
        failure = REASON_NOT_A_SEQUENCE
    if failure is not None:
        purged = purge_role_record(source) if source is not None else False
        report = ValidationReport(path=path, reason=failure, purged=purged)
        _emit(report)
        return EMPTY_ROLE_SET, report

    accepted: list[Role] = []
    seen: set[int] = set()
    dropped = duplicates = 0
    for item in value:
        role = coerce_role(item, enforce_role_ids=enforce_role_ids)
        if role is None:
            dropped += 1
        elif role.id in seen:
            duplicates += 1
        else:
            seen.add(role.id)
            accepted.append(role)

    report = ValidationReport(
        path=path,
        reason=REASON_PARTIAL if dropped else REASON_OK,
        total=len(value),
        accepted=len(accepted),
        dropped=dropped,
        duplicates=duplicates,
    )
    _emit(report)
    return (RoleSet(accepted) if accepted else EMPTY_ROLE_SET), report


def validate(
    raw: Any,
    *,
    source: IdentitySourceAdapter | None = None,
    enforce_role_ids: bool | None = None,
) -> RoleSet:
    """Convert untrusted *raw* into a :class:`RoleSet`. Never raises."""
    role_set, _ = validate_with_report(raw, source=source, enforce_role_ids=enforce_role_ids)
    return role_set
