# vms_core/common/models.py
from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from vms_core.lifecycle.records import HistoryEntry, RecordState
from vms_core.lifecycle.states import RecordKind


class TimeStampedModel(models.Model):
    """
    Standard timestamps for directory-style entities.
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class RecordModel(models.Model):
    """
    Base for enquiries and visits.

    Timestamps are written by services (not auto_now) so the lifecycle
    engine's `now` is what lands in the row.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(default=timezone.now)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    created_by_email = models.CharField(max_length=255, blank=True, default="")

    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    updated_by_email = models.CharField(max_length=255, blank=True, default="")

    patient_name = models.CharField(max_length=255, blank=True, default="")

    assigned_staff = models.CharField(max_length=255, blank=True, default="")
    assigned_staff_at = models.DateTimeField(null=True, blank=True)
    assigned_doctor = models.CharField(max_length=255, blank=True, default="")
    assigned_doctor_at = models.DateTimeField(null=True, blank=True)

    details = models.TextField(blank=True, default="")

    doc_remarks = models.TextField(blank=True, default="")
    doc_remarks_at = models.DateTimeField(null=True, blank=True)

    # Subclasses set the kind and may extend the field list.
    RECORD_KIND: RecordKind
    RECORD_FIELDS: tuple[str, ...] = (
        "status",
        "assigned_staff",
        "assigned_staff_at",
        "assigned_doctor",
        "assigned_doctor_at",
        "details",
        "doc_remarks",
        "doc_remarks_at",
        "updated_at",
        "updated_by_id",
        "updated_by_email",
    )

    class Meta:
        abstract = True

    # -------------------------
    # Lifecycle mapping
    # -------------------------
    def history_entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(
            HistoryEntry(text=e.text, at=e.at, author_name=e.author_name, author_email=e.author_email)
            for e in self.detail_edits.all()
        )

    def record_extra(self) -> dict:
        return {}

    def to_record(self) -> RecordState:
        values = {name: getattr(self, name) for name in self.RECORD_FIELDS}
        values.update(self.record_extra())
        return RecordState(
            kind=self.RECORD_KIND,
            record_id=str(self.pk),
            history=self.history_entries(),
            **values,
        )

    def apply_record_extra(self, record: RecordState) -> list[str]:
        return []

    def apply_record(self, record: RecordState) -> list[str]:
        """
        Copy engine output onto the row. Returns update_fields for save().
        History is not touched here (entries are inserted separately).
        """
        update_fields: list[str] = []
        for name in self.RECORD_FIELDS:
            value = getattr(record, name)
            if getattr(self, name) != value:
                setattr(self, name, value)
                update_fields.append(name[:-3] if name.endswith("_id") else name)
        update_fields.extend(self.apply_record_extra(record))
        return update_fields


class DetailEditModel(models.Model):
    """
    One immutable entry in a record's details history.
    """
    id = models.BigAutoField(primary_key=True)

    text = models.TextField(blank=True, default="")
    at = models.DateTimeField(db_index=True)
    author_name = models.CharField(max_length=255)
    author_email = models.CharField(max_length=255, blank=True, default="")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    class Meta:
        abstract = True
        ordering = ("at", "id")

    def save(self, *args, **kwargs):
        if self.pk is not None and not kwargs.get("force_insert", False):
            raise ValueError("History entries are append-only.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("History entries are append-only.")
