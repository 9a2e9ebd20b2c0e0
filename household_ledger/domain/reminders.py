"""Debt reminder planning with an explicit cool-down store"""

import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from household_ledger.domain.models import DebtReminder, PairwiseBalance


class ReminderCooldownStore:
    """
    Last-sent timestamps per reminder key, expiring after `ttl`.

    try_acquire checks and records under one lock, so two concurrent ticks
    cannot both send the same reminder inside a cool-down window.
    """

    def __init__(self, ttl: timedelta):
        self.ttl = ttl
        self._last_sent: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def try_acquire(self, key: str, now: datetime) -> bool:
        """Record a send for key unless one happened within ttl; True if recorded"""
        with self._lock:
            last = self._last_sent.get(key)
            if last is not None and now - last < self.ttl:
                return False
            self._last_sent[key] = now
            return True

    def last_sent(self, key: str) -> Optional[datetime]:
        with self._lock:
            return self._last_sent.get(key)

    def purge_expired(self, now: datetime) -> int:
        """Drop entries older than ttl; returns how many were removed"""
        with self._lock:
            expired = [key for key, sent in self._last_sent.items() if now - sent >= self.ttl]
            for key in expired:
                del self._last_sent[key]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_sent)


def debt_reminder_key(household_id: str, balance: PairwiseBalance) -> str:
    return f"debt:{balance.from_user_id}:{balance.to_user_id}:{household_id}"


def plan_debt_reminders(
    household_id: str,
    balances: Sequence[PairwiseBalance],
    now: datetime,
    store: ReminderCooldownStore,
) -> List[DebtReminder]:
    """
    Two reminders (debtor and creditor) per balance not in cool-down.

    The cool-down is acquired here, so a planned reminder counts as sent even if
    delivery later fails.
    """
    reminders: List[DebtReminder] = []
    for balance in balances:
        if balance.amount <= 0:
            continue
        if not store.try_acquire(debt_reminder_key(household_id, balance), now):
            continue

        reminders.append(
            DebtReminder(
                recipient_id=balance.from_user_id,
                counterparty_id=balance.to_user_id,
                household_id=household_id,
                amount=balance.amount,
                is_owed=False,
            )
        )
        reminders.append(
            DebtReminder(
                recipient_id=balance.to_user_id,
                counterparty_id=balance.from_user_id,
                household_id=household_id,
                amount=balance.amount,
                is_owed=True,
            )
        )
    return reminders


def format_debt_reminder(reminder: DebtReminder, counterparty_name: str) -> tuple[str, str]:
    """Notification (title, body) for a reminder"""
    if reminder.is_owed:
        body = f"{counterparty_name} owes you ${reminder.amount:.2f}"
    else:
        body = f"You owe {counterparty_name} ${reminder.amount:.2f}"
    return "Debt Reminder", body
