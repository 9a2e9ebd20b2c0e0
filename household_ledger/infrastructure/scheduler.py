"""Periodic debt reminder scheduler"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from sqlalchemy.orm import Session

from household_ledger.domain.balances import compute_balances
from household_ledger.domain.exceptions import NotificationDeliveryError
from household_ledger.domain.models import ExpenseRecord, SettlementRecord
from household_ledger.domain.reminders import (
    ReminderCooldownStore,
    format_debt_reminder,
    plan_debt_reminders,
)
from household_ledger.infrastructure.clients.push import PushNotificationClient
from household_ledger.infrastructure.database.repositories import (
    ExpenseRepository,
    HouseholdRepository,
    SettlementRepository,
)
from household_ledger.infrastructure.observability.metrics import debt_reminder_counter, scheduler_failure_counter


@dataclass
class MemberContact:
    display_name: str
    push_token: Optional[str]


@dataclass
class HouseholdLedger:
    """Everything a reminder pass needs for one household, detached from the session"""

    household_id: str
    members: Dict[str, MemberContact]
    expenses: List[ExpenseRecord]
    settlements: List[SettlementRecord]


class DebtReminderScheduler:
    """
    Sends debt reminders to both sides of every outstanding balance.

    One asyncio task drives all ticks, so the cool-down store has a single
    writer; the store itself is also lock-protected. Database reads are
    synchronous and run in worker threads; only push delivery runs on the loop.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        push_client: PushNotificationClient,
        cooldown_store: ReminderCooldownStore,
        interval_seconds: float,
    ):
        self.session_factory = session_factory
        self.push_client = push_client
        self.cooldown_store = cooldown_store
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Start the periodic loop on the running event loop (first tick runs immediately)"""
        if self._task is None:
            logging.info("Starting debt reminder scheduler", extra={"interval_seconds": self.interval_seconds})
            self._task = asyncio.create_task(self._run_forever())

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logging.info("Debt reminder scheduler stopped")

    async def _run_forever(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception as e:
                logging.error(f"Scheduler tick failed: {e}")
            await asyncio.sleep(self.interval_seconds)

    async def run_once(self, now: Optional[datetime] = None) -> int:
        """
        Run one reminder pass over all households.

        Returns:
            Number of notifications delivered
        """
        now = now or datetime.now(timezone.utc)
        self.cooldown_store.purge_expired(now)

        delivered = 0
        for household_id in await asyncio.to_thread(self._list_household_ids):
            try:
                ledger = await asyncio.to_thread(self._load_household, household_id)
                delivered += await self._remind_household(ledger, now)
            except Exception as e:
                scheduler_failure_counter.inc()
                logging.error(
                    f"Debt reminders failed for household: {e}",
                    extra={"household_id": str(household_id)},
                )

        return delivered

    def _list_household_ids(self) -> List[uuid.UUID]:
        db = self.session_factory()
        try:
            return [h.id for h in HouseholdRepository(db).list_households()]
        finally:
            db.close()

    def _load_household(self, household_id: uuid.UUID) -> HouseholdLedger:
        db = self.session_factory()
        try:
            household = HouseholdRepository(db).get_household(household_id)
            return HouseholdLedger(
                household_id=str(household_id),
                members={m.user_id: MemberContact(m.display_name, m.push_token) for m in household.members},
                expenses=ExpenseRepository(db).list_records(household_id),
                settlements=SettlementRepository(db).list_records(household_id),
            )
        finally:
            db.close()

    async def _remind_household(self, ledger: HouseholdLedger, now: datetime) -> int:
        if not ledger.expenses:
            return 0

        members = ledger.members
        # Balances involving former members cannot be addressed by name
        balances = [
            b for b in compute_balances(ledger.expenses, ledger.settlements)
            if b.from_user_id in members and b.to_user_id in members
        ]

        delivered = 0
        for reminder in plan_debt_reminders(ledger.household_id, balances, now, self.cooldown_store):
            recipient = members[reminder.recipient_id]
            title, body = format_debt_reminder(reminder, members[reminder.counterparty_id].display_name)
            try:
                sent = await self.push_client.send(
                    recipient.push_token,
                    title,
                    body,
                    {"type": "debt_reminder", "householdId": ledger.household_id},
                )
            except NotificationDeliveryError as e:
                logging.warning(
                    f"Debt reminder not delivered: {e}",
                    extra={"household_id": ledger.household_id, "user_id": reminder.recipient_id},
                )
                continue

            if sent:
                delivered += 1
                debt_reminder_counter.labels(side="creditor" if reminder.is_owed else "debtor").inc()

        return delivered
