"""
Reusable model mixins.

Mixins:
    UUIDPrimaryKeyMixin: UUID as primary key
    ExtraDataMixin: Free-form JSON map with merge semantics

Usage:
    from core.models import BaseModel
    from core.model_mixins import ExtraDataMixin, UUIDPrimaryKeyMixin

    class Order(UUIDPrimaryKeyMixin, ExtraDataMixin, BaseModel):
        no = models.CharField(max_length=64, unique=True)

Note:
    List mixins before BaseModel so their Meta options are picked up.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db import models

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any


class UUIDPrimaryKeyMixin(models.Model):
    """
    Use UUID as primary key instead of auto-increment integer.

    Benefits:
        - Non-guessable IDs in URLs
        - Can be generated before database insert
        - URLs don't reveal record count or order

    Fields:
        id: UUIDField as primary key (auto-generated)
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
        help_text="Unique identifier for this record",
    )

    class Meta:
        abstract = True


class ExtraDataMixin(models.Model):
    """
    Flexible JSON map for diagnostics and integration data.

    Values are merged, never replaced wholesale, so independent writers
    (refund failures, support notes, gateway diagnostics) can each add
    their keys without dropping the others.

    Fields:
        extra: JSONField holding a flat string-keyed map

    Usage:
        order.merge_extra({"refund_failed_code": "ACQ.TRADE_HAS_CLOSE"})
        order.save(update_fields=["extra", "updated_at"])

        order.get_extra("refund_failed_code")  # "ACQ.TRADE_HAS_CLOSE"

    Note:
        merge_extra() is a read-modify-write on the in-memory instance.
        Callers must hold the row lock (select_for_update) for the
        duration of the surrounding transaction.
    """

    extra = models.JSONField(
        default=dict,
        blank=True,
        help_text="Free-form key-value data (failure diagnostics, etc.)",
    )

    class Meta:
        abstract = True

    def get_extra(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default."""
        return (self.extra or {}).get(key, default)

    def merge_extra(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """
        Merge values into extra, preserving existing keys.

        Keys present in values overwrite the same keys in extra; all
        other keys are kept. Does not save.

        Args:
            values: Mapping of JSON-serializable values

        Returns:
            The merged extra dict
        """
        merged = dict(self.extra or {})
        merged.update(values)
        self.extra = merged
        return merged
