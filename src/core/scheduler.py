"""Daily recurring sends for the secondary channel.

Each durable schedule row is materialized as one APScheduler cron job. The
registry of live jobs is private to ScheduleManager and is the only thing
that decides whether a fire is still wanted, so a job that slips through
after cancel() returned finds no registry entry and does nothing.

Times are local wall-clock: the trigger uses the scheduler's timezone, which
defaults to the host's local zone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.cron import CronTrigger

from core.config import ReplyConfig
from core.delivery import resolve_with_timeout, send_with_timeout
from core.errors import NotFoundError, PersistenceError, TransportError, ValidationError
from core.models import Schedule, build_schedule_id
from core.ports import ContactTransportPort, StoragePort

LOGGER = logging.getLogger(__name__)

# A fire delayed by a busy loop still goes out if it is at most this late.
MISFIRE_GRACE_SECONDS = 60


def validate_time(hour: int, minute: int) -> None:
    if not 0 <= hour <= 23:
        raise ValidationError(f"Hour must be between 00 and 23, got {hour}.")
    if not 0 <= minute <= 59:
        raise ValidationError(f"Minute must be between 00 and 59, got {minute}.")


@dataclass
class _LiveTimer:
    schedule: Schedule
    job: Any


class ScheduleManager:
    """Keeps schedule rows and live cron jobs in lockstep."""

    def __init__(
        self,
        storage: StoragePort,
        transport: ContactTransportPort,
        job_scheduler,
        reply_config: ReplyConfig,
    ) -> None:
        self._storage = storage
        self._transport = transport
        self._jobs = job_scheduler
        self._config = reply_config
        self._timers: dict[str, _LiveTimer] = {}

    def create(self, contact_id: str, message: str, hour: int, minute: int) -> tuple[Schedule, bool]:
        """Persist a schedule and (re)start its timer.

        Returns (schedule, replaced) where replaced tells whether an entry with
        the same contact and time existed. The row is written before any timer
        is touched: a failed write leaves the previous entry fully intact.
        """

        validate_time(hour, minute)
        if not message.strip():
            raise ValidationError("Message must not be empty.")
        schedule = Schedule(contact_id=contact_id, message=message, hour=hour, minute=minute)

        self._storage.upsert_schedule(schedule)
        replaced = self._stop_timer(schedule.id)
        self._start_timer(schedule)
        LOGGER.info("Schedule %s %s", schedule.id, "replaced" if replaced else "created")
        return schedule, replaced

    def cancel(self, contact_id: str, hour: int, minute: int) -> str:
        """Stop the timer and delete the row; NotFoundError when absent."""

        schedule_id = build_schedule_id(contact_id, hour, minute)
        live = self._timers.pop(schedule_id, None)
        if live is not None:
            self._remove_job(live)

        try:
            removed = self._storage.delete_schedule(schedule_id)
        except PersistenceError:
            # The row is still there, so it must keep its timer.
            if live is not None:
                self._start_timer(live.schedule)
            raise

        if not removed:
            raise NotFoundError(f"No schedule found for +{contact_id} at {hour:02d}:{minute:02d}.")
        LOGGER.info("Schedule %s cancelled", schedule_id)
        return schedule_id

    def restore(self) -> int:
        """Startup reconciliation: give every stored row a live timer.

        A row that cannot be materialized is logged and skipped so it does
        not block the others. Returns the number of live timers.
        """

        schedules = self._storage.list_schedules()
        for schedule in schedules:
            try:
                self._stop_timer(schedule.id)
                self._start_timer(schedule)
            except Exception:
                LOGGER.exception("Failed to restore schedule %s", schedule.id)
        LOGGER.info("Restored %s of %s schedules", len(self._timers), len(schedules))
        return len(self._timers)

    def list_all(self) -> list[Schedule]:
        return self._storage.list_schedules()

    def live_ids(self) -> list[str]:
        return list(self._timers)

    def shutdown(self) -> None:
        """Stop every live timer; rows stay for the next restore()."""

        for schedule_id in list(self._timers):
            self._stop_timer(schedule_id)

    def _start_timer(self, schedule: Schedule) -> None:
        trigger = CronTrigger(hour=schedule.hour, minute=schedule.minute)
        job = self._jobs.add_job(
            self._fire,
            trigger,
            args=[schedule],
            id=schedule.id,
            name=f"schedule {schedule.id}",
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=MISFIRE_GRACE_SECONDS,
        )
        self._timers[schedule.id] = _LiveTimer(schedule=schedule, job=job)

    def _stop_timer(self, schedule_id: str) -> bool:
        live = self._timers.pop(schedule_id, None)
        if live is None:
            return False
        self._remove_job(live)
        return True

    @staticmethod
    def _remove_job(live: _LiveTimer) -> None:
        try:
            live.job.remove()
        except JobLookupError:
            LOGGER.debug("Job for %s was already gone", live.schedule.id)

    async def _fire(self, schedule: Schedule) -> None:
        live = self._timers.get(schedule.id)
        if live is None or live.schedule is not schedule:
            return

        if not self._transport.is_ready():
            LOGGER.warning("Skipping schedule %s: transport is not ready", schedule.id)
            return

        timeout = self._config.send_timeout_seconds
        try:
            destination = await resolve_with_timeout(self._transport, schedule.contact_id, timeout)
            if destination is None:
                LOGGER.warning("Skipping schedule %s: +%s is not registered", schedule.id, schedule.contact_id)
                return
            await send_with_timeout(self._transport, destination, schedule.message, timeout)
        except TransportError as exc:
            # Missed fires are not retried; tomorrow's trigger is the retry.
            LOGGER.warning("Scheduled send %s failed: %s", schedule.id, exc)
            return
        LOGGER.info("Scheduled message sent to +%s (%s)", schedule.contact_id, schedule.time_label)
