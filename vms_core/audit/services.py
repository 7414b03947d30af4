# vms_core/audit/services.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from vms_core.audit.models import AuditEvent
from vms_core.lifecycle.engine import Effect
from vms_core.lifecycle.records import Actor


@dataclass(frozen=True)
class AuditRecord:
    event_code: str
    entity_type: str
    entity_id: UUID
    actor_user_id: int | None
    metadata: Dict[str, Any]


class AuditService:
    """
    Central audit writer. Persists into AuditEvent (immutable).
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        actor: Actor,
        metadata: Optional[Dict[str, Any]] = None,
        occurred_at: Optional[datetime] = None,
    ) -> AuditRecord:
        metadata = metadata or {}

        AuditEvent.objects.create(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=actor.user_id,
            actor_name=actor.display_name,
            actor_email=actor.email,
            occurred_at=occurred_at or timezone.now(),
            metadata=metadata,
        )

        return AuditRecord(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_user_id=actor.user_id,
            metadata=metadata,
        )

    @staticmethod
    def log_effects(
        *,
        entity_type: str,
        entity_id: UUID,
        effects: Iterable[Effect],
        actor: Actor,
        occurred_at: Optional[datetime] = None,
    ) -> int:
        """
        One audit row per lifecycle effect: event_code = "<entity>.<effect code>".
        """
        prefix = entity_type.lower()
        count = 0
        for effect in effects:
            AuditService.log(
                event_code=f"{prefix}.{effect.code}",
                entity_type=entity_type,
                entity_id=entity_id,
                actor=actor,
                metadata=dict(effect.meta),
                occurred_at=occurred_at,
            )
            count += 1
        return count
