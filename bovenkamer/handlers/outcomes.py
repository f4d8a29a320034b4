"""Organizer-entered outcomes."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from bovenkamer.repositories.interface import FieldRepository, OutcomeRepository
from bovenkamer.scoring.audit import ScoringAuditLogger, get_audit_logger
from bovenkamer.scoring.determinism import normalize_number
from bovenkamer.scoring.fields import coerce_outcome_value, scoreable_fields
from bovenkamer.scoring.types import OutcomeRecord
from bovenkamer.shared.errors import ValidationError

logger = logging.getLogger(__name__)

_MISSING = object()


class OutcomeRecorder:
    def __init__(
        self,
        *,
        fields: FieldRepository,
        outcomes: OutcomeRepository,
        audit: Optional[ScoringAuditLogger] = None,
    ):
        self.fields = fields
        self.outcomes = outcomes
        self.audit = audit or get_audit_logger()

    async def record(
        self,
        results: Mapping[str, Any],
        updated_by: Optional[int] = None,
        replace: bool = False,
    ) -> OutcomeRecord:
        """Merge outcome values into the single outcome record.

        A ``None`` value removes that key. With ``replace`` the stored
        mapping is discarded first. Values for active scoreable fields are
        converted to the shape of that field's answers. Keys that are not
        active scoreable fields are kept but logged, since they will not be
        scored until a matching field is activated.

        Raises:
            ValidationError: ``results`` is not a mapping of string keys, or
                a value does not fit its field's type. Nothing is stored.
        """
        if not isinstance(results, Mapping):
            raise ValidationError("results must be a mapping of field key to value")
        bad_keys = [k for k in results if not isinstance(k, str) or not k]
        if bad_keys:
            raise ValidationError(f"invalid outcome keys: {bad_keys!r}")

        fields = {f.key: f for f in scoreable_fields(await self.fields.active_fields())}
        updates: Dict[str, Any] = {}
        errors: List[str] = []
        for key, value in results.items():
            value = normalize_number(value)
            if key in fields:
                try:
                    value = coerce_outcome_value(fields[key], value)
                except ValidationError as exc:
                    errors.append(str(exc))
                    continue
            updates[key] = value
        if errors:
            raise ValidationError("; ".join(errors))

        unknown = [k for k, v in updates.items() if v is not None and k not in fields]
        if unknown:
            logger.warning({"outcomes": {"event": "unknown_keys", "keys": sorted(unknown)}})

        previous, record = await self.outcomes.merge(updates, updated_by, replace=replace)
        changed = [
            k for k, v in updates.items()
            if v is not None and not _same_value(previous.values.get(k, _MISSING), v)
        ]
        cleared = [k for k in previous.values if k not in record.values]
        self.audit.log_outcome_update(updated_by, changed, cleared, unknown)
        return record


def _same_value(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


__all__ = ["OutcomeRecorder"]
