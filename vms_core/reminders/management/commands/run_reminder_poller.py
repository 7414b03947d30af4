# vms_core/reminders/management/commands/run_reminder_poller.py
from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from vms_core.reminders.poller import ReminderPoller
from vms_core.reminders.services import ReminderService


class Command(BaseCommand):
    help = "Run the reminder expiry poller in the foreground (Ctrl+C to stop)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between sweeps (default: VMS_REMINDER_POLL_INTERVAL_SECONDS).",
        )
        parser.add_argument("--once", action="store_true", help="Run a single sweep and exit.")
        parser.add_argument(
            "--prune-markers",
            action="store_true",
            help="Also delete device alert markers older than the retention window.",
        )

    def handle(self, *args, **opts):
        interval = opts["interval"]
        if interval is None:
            interval = getattr(settings, "VMS_REMINDER_POLL_INTERVAL_SECONDS", 60)
        try:
            poller = ReminderPoller(interval_seconds=interval)
        except ValueError as e:
            raise CommandError(str(e))

        if opts["prune_markers"]:
            pruned = ReminderService.prune_markers()
            self.stdout.write(f"Markers pruned: {pruned}")

        if opts["once"]:
            run = poller.tick()
            self.stdout.write(f"Reminders checked: {run.checked}")
            self.stdout.write(f"Reminders expired: {len(run.expired)}")
            if run.failed:
                self.stdout.write(self.style.WARNING(f"Reminders failed: {len(run.failed)}"))
            return

        self.stdout.write(self.style.SUCCESS(f"Reminder poller running every {interval}s"))
        try:
            poller.run_forever()
        except (KeyboardInterrupt, SystemExit):
            self.stdout.write("Stopping reminder poller...")
        finally:
            poller.stop()

        self.stdout.write(f"Ticks run: {poller.ticks}")
