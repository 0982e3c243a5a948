"""Close published packs whose selection deadline has passed."""
from __future__ import annotations

from django.core.management.base import BaseCommand

from electives.deadline import close_expired_packs


class Command(BaseCommand):
    help = "Move published elective packs past their deadline to the closed state"

    def handle(self, *args, **options):
        closed = close_expired_packs()
        if closed:
            self.stdout.write(self.style.SUCCESS(f"Closed {closed} elective pack(s)."))
        else:
            self.stdout.write("No elective packs past their deadline.")
