# sc_core/deletion/management/commands/run_deletion_sweep.py
from __future__ import annotations

import time

from django.core.management.base import BaseCommand

from sc_core.common.conf import domain_setting
from sc_core.deletion.sweep import run_sweep


class Command(BaseCommand):
    help = "Send deletion reminders, finalize due deletions and cancel unconfirmed ones."

    def add_arguments(self, parser):
        parser.add_argument("--loop", action="store_true", help="Keep running, sweeping every --interval seconds.")
        parser.add_argument("--interval", type=int, default=None, help="Seconds between sweeps (with --loop).")

    def handle(self, *args, **opts):
        interval = opts["interval"] or domain_setting("DELETION_SWEEP_INTERVAL_SECONDS")

        while True:
            result = run_sweep()
            self.stdout.write(
                self.style.SUCCESS(
                    f"Finalized: {result.finalized}  Reminded: {result.reminded}  "
                    f"Timed out: {result.timed_out}  Skipped: {result.skipped}  Failed: {result.failed}"
                )
            )
            if not opts["loop"]:
                break
            time.sleep(interval)
