# vms_core/reminders/models.py
from django.db import models


class DeviceNotificationMarker(models.Model):
    """
    "lastShown:<record id>" for one device: when that device last showed
    the expiry alert for a record. Stamped with the server clock.
    """
    id = models.BigAutoField(primary_key=True)

    device_id = models.CharField(max_length=128, db_index=True)
    record_id = models.UUIDField(db_index=True)
    shown_at = models.DateTimeField(db_index=True)

    class Meta:
        db_table = "reminders_device_marker"
        constraints = [
            models.UniqueConstraint(fields=["device_id", "record_id"], name="uq_marker_device_record"),
        ]

    def __str__(self) -> str:
        return f"{self.device_id} {self.key}"

    @property
    def key(self) -> str:
        return f"lastShown:{self.record_id}"
