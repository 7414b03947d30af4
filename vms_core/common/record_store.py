# vms_core/common/record_store.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from django.utils import timezone

from vms_core.audit.services import AuditService
from vms_core.lifecycle import engine
from vms_core.lifecycle.engine import Outcome
from vms_core.lifecycle.records import Actor

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Bridge between RecordModel rows and the lifecycle engine.

    Callers own the transaction and the row lock (select_for_update);
    this loads the record, applies the command, writes the diff,
    appends new history rows and audits every effect.
    """

    @staticmethod
    def apply(
        *,
        instance,
        command: Any,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Outcome:
        now = now or timezone.now()
        entity_type = type(instance).__name__

        before = instance.to_record()
        outcome = engine.apply(before, command, now=now, actor=actor)

        # No-op (idempotent repeat): nothing to write or audit
        if not outcome.changed:
            return outcome

        update_fields = instance.apply_record(outcome.record)
        if update_fields:
            instance.save(update_fields=update_fields)

        for entry in outcome.record.history[len(before.history):]:
            instance.detail_edits.create(
                text=entry.text,
                at=entry.at,
                author_name=entry.author_name,
                author_email=entry.author_email,
                author_id=actor.user_id,
            )

        AuditService.log_effects(
            entity_type=entity_type,
            entity_id=instance.pk,
            effects=outcome.effects,
            actor=actor,
            occurred_at=now,
        )

        logger.info(
            "%s %s: %s (by %s)",
            entity_type,
            instance.pk,
            ", ".join(e.code for e in outcome.effects),
            actor.email or actor.display_name,
        )
        return outcome
