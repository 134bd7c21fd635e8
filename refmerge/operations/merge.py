"""Merge rules for folding an incoming record into a stored one."""

from collections.abc import Mapping

import msgspec

from ..core.fields import SCALAR_FIELDS
from ..core.models import Record, unique


class MergeEngine:
    """Combines an incoming record with its matched existing record.

    Every rule either fills an empty slot or takes a set union, so
    merging the same incoming record twice changes nothing the second
    time:

    - scalar fields: the existing value wins unless it is empty
    - attachments: union by path, existing order first
    - extra fields: incoming keys fill missing or blank existing keys
    - collections: union, memberships are never removed
    """

    def merge(self, existing: Record, incoming: Record) -> Record:
        """Return ``existing`` enriched with ``incoming``; the id is kept."""
        changes: dict = {
            name: getattr(incoming, name)
            for name in SCALAR_FIELDS
            if not getattr(existing, name) and getattr(incoming, name)
        }

        attachments = unique(existing.attachments + incoming.attachments)
        if attachments != existing.attachments:
            changes["attachments"] = attachments

        extra = self.merge_extra(existing.extra, incoming.extra)
        if extra != existing.extra:
            changes["extra"] = extra

        collections = unique(existing.collections + incoming.collections)
        if collections != existing.collections:
            changes["collections"] = collections

        if not changes:
            return existing
        return msgspec.structs.replace(existing, **changes)

    @staticmethod
    def merge_extra(
        existing: Mapping[str, str], incoming: Mapping[str, str]
    ) -> dict[str, str]:
        """Fill missing or whitespace-only keys of ``existing`` from ``incoming``."""
        merged = dict(existing)
        for key, value in incoming.items():
            if not merged.get(key, "").strip():
                merged[key] = value
        return merged
