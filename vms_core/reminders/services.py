# vms_core/reminders/services.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from vms_core.enquiries.models import Enquiry
from vms_core.enquiries.selectors import EnquirySelector
from vms_core.enquiries.services import EnquiryService
from vms_core.lifecycle.dedup import should_notify
from vms_core.lifecycle.records import SYSTEM_ACTOR, Actor
from vms_core.lifecycle.reminders import is_recent_expiry
from vms_core.reminders.models import DeviceNotificationMarker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpiryAlert:
    enquiry_id: UUID
    enquirer_name: str
    enquirer_mobile: str
    patient_name: str
    pending_since: Optional[datetime]
    expired_at: datetime

    @property
    def message(self) -> str:
        who = self.patient_name or self.enquirer_name
        return f"Reminder expired: enquiry for {who} is pending again."


@dataclass
class ExpiryRun:
    checked: int = 0
    expired: list[UUID] = field(default_factory=list)
    failed: list[UUID] = field(default_factory=list)


def dedup_window() -> timedelta:
    return timedelta(minutes=getattr(settings, "VMS_NOTIFICATION_DEDUP_MINUTES", 30))


def recent_expiry_window() -> timedelta:
    return timedelta(hours=getattr(settings, "VMS_RECENT_EXPIRY_HOURS", 24))


def marker_retention() -> timedelta:
    return timedelta(days=getattr(settings, "VMS_MARKER_RETENTION_DAYS", 7))


class ReminderService:
    """
    Reminder expiry + alert de-duplication.

    - process_due: periodic sweep (poller); each record is expired in its own
      transaction so one failure does not block the rest.
    - check_alert: on-load / sign-in check for one enquiry on one device.
    """

    # -------------------------
    # Expiry sweep
    # -------------------------
    @staticmethod
    def process_due(*, now: Optional[datetime] = None, actor: Actor = SYSTEM_ACTOR) -> ExpiryRun:
        now = now or timezone.now()
        run = ExpiryRun()

        candidates = list(
            EnquirySelector.with_active_reminders().values_list(
                "id", "reminder_scheduled_at", "reminder_duration_hours"
            )
        )

        for enquiry_id, scheduled_at, hours in candidates:
            run.checked += 1
            if now < scheduled_at + timedelta(hours=hours):
                continue

            try:
                if EnquiryService.expire_reminder(enquiry_id=enquiry_id, actor=actor, now=now):
                    run.expired.append(enquiry_id)
            except Enquiry.DoesNotExist:
                # deleted between the scan and the lock
                continue
            except Exception:
                # retried on the next tick
                logger.exception("Reminder expiry failed for enquiry %s", enquiry_id)
                run.failed.append(enquiry_id)

        if run.expired or run.failed:
            logger.info(
                "Reminder sweep: checked=%s expired=%s failed=%s",
                run.checked,
                len(run.expired),
                len(run.failed),
            )
        return run

    # -------------------------
    # Device markers
    # -------------------------
    @staticmethod
    def prune_markers(*, device_id: Optional[str] = None, now: Optional[datetime] = None) -> int:
        """
        Drop markers older than the retention window (all devices when device_id is None).
        """
        now = now or timezone.now()
        qs = DeviceNotificationMarker.objects.filter(shown_at__lt=now - marker_retention())
        if device_id is not None:
            qs = qs.filter(device_id=device_id)
        deleted, _ = qs.delete()
        return deleted

    @staticmethod
    def device_last_shown(*, device_id: str, enquiry_id: UUID) -> Optional[datetime]:
        marker = DeviceNotificationMarker.objects.filter(device_id=device_id, record_id=enquiry_id).first()
        return marker.shown_at if marker else None

    # -------------------------
    # Alerts
    # -------------------------
    @staticmethod
    @transaction.atomic
    def check_alert(
        *,
        enquiry_id: UUID,
        device_id: str,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> Optional[ExpiryAlert]:
        """
        Returns an alert to show, or None.

        Runs the expiry check first (a viewer loading an overdue record resets
        it even if the poller has not run yet), then alerts only when the
        record went back to pending through expiry recently and neither this
        device nor any other viewer was alerted within the dedup window.
        Showing the alert stamps both markers.
        """
        now = now or timezone.now()
        ReminderService.prune_markers(device_id=device_id, now=now)

        EnquiryService.expire_reminder(enquiry_id=enquiry_id, actor=actor, now=now)

        enquiry = Enquiry.objects.select_for_update().get(id=enquiry_id)
        record = enquiry.to_record()
        if not is_recent_expiry(record, now, window=recent_expiry_window()):
            return None

        if not should_notify(
            now=now,
            device_last_shown=ReminderService.device_last_shown(device_id=device_id, enquiry_id=enquiry_id),
            record_last_shown=record.last_notification_shown,
            window=dedup_window(),
        ):
            return None

        DeviceNotificationMarker.objects.update_or_create(
            device_id=device_id,
            record_id=enquiry_id,
            defaults={"shown_at": now},
        )
        EnquiryService.record_notification_shown(enquiry_id=enquiry_id, actor=actor, now=now)

        logger.info("Expiry alert shown for enquiry %s on device %s", enquiry_id, device_id)
        return ExpiryAlert(
            enquiry_id=enquiry.id,
            enquirer_name=enquiry.enquirer_name,
            enquirer_mobile=enquiry.enquirer_mobile,
            patient_name=enquiry.patient_name,
            pending_since=enquiry.pending_since,
            expired_at=enquiry.reminder_expired_at,
        )

    @staticmethod
    def pending_alerts(
        *,
        device_id: str,
        actor: Actor,
        now: Optional[datetime] = None,
    ) -> list[ExpiryAlert]:
        """
        Sign-in / dashboard load: expire anything overdue, then collect
        alerts for every enquiry that expired within the recent window.
        """
        now = now or timezone.now()
        ReminderService.process_due(now=now, actor=SYSTEM_ACTOR)

        alerts: list[ExpiryAlert] = []
        since = now - recent_expiry_window()
        expired_ids = list(EnquirySelector.recently_expired(since=since).values_list("id", flat=True))
        for enquiry_id in expired_ids:
            alert = ReminderService.check_alert(enquiry_id=enquiry_id, device_id=device_id, actor=actor, now=now)
            if alert is not None:
                alerts.append(alert)
        return alerts
