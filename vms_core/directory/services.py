# vms_core/directory/services.py
from __future__ import annotations

import logging

from django.db import transaction
from django.db.models import Model

from vms_core.audit.services import AuditService
from vms_core.lifecycle.records import Actor

logger = logging.getLogger(__name__)


class DirectoryService:
    """
    Save/delete for doctors, staff and branches, with an audit entry per write.
    Field validation (including the doctor name prefix) lives in the serializers.
    """

    @staticmethod
    def _event(instance: Model, verb: str) -> str:
        return f"{type(instance).__name__.lower()}.{verb}"

    @staticmethod
    @transaction.atomic
    def save(*, serializer, actor: Actor) -> Model:
        created = serializer.instance is None
        changed = sorted(serializer.validated_data.keys())
        instance = serializer.save()

        AuditService.log(
            event_code=DirectoryService._event(instance, "created" if created else "updated"),
            entity_type=type(instance).__name__,
            entity_id=instance.pk,
            actor=actor,
            metadata={"fields": changed},
        )
        logger.info("%s %s %s", type(instance).__name__, instance.pk, "created" if created else "updated")
        return instance

    @staticmethod
    @transaction.atomic
    def delete(*, instance: Model, actor: Actor) -> None:
        entity_type = type(instance).__name__
        entity_id = instance.pk
        label = str(instance)
        instance.delete()

        AuditService.log(
            event_code=f"{entity_type.lower()}.deleted",
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            metadata={"label": label},
        )
        logger.info("%s %s deleted", entity_type, entity_id)
