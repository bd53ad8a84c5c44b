"""Per (actor, scope) rate limiting: check first, then the caller stamps.

try_consume() never writes. The action that was allowed calls stamp() as
part of its own transaction, which keeps "check status, then perform and
stamp" a single unit when try_consume(lock=True) is used inside
transaction.atomic.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from django.utils import timezone

from .exceptions import CooldownActive, remaining_seconds
from .models import CooldownRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CooldownStatus:
	allowed: bool
	remaining: timedelta
	last_used_at: datetime | None = None

	def as_dict(self):
		return {
			"allowed": self.allowed,
			"remaining_seconds": remaining_seconds(self.remaining),
			"last_used_at": self.last_used_at.isoformat() if self.last_used_at else None,
		}


def last_used(actor_key, scope_key, *, lock: bool = False) -> datetime | None:
	qs = CooldownRecord.objects.filter(actor_key=str(actor_key), scope_key=scope_key)
	if lock:
		qs = qs.select_for_update()
	row = qs.first()
	return row.last_used_at if row else None


def status_for(last_used_at: datetime | None, interval_seconds: int, now: datetime) -> CooldownStatus:
	if last_used_at is None:
		return CooldownStatus(allowed=True, remaining=timedelta(0))
	interval = timedelta(seconds=interval_seconds)
	remaining = max(timedelta(0), interval - (now - last_used_at))
	return CooldownStatus(allowed=remaining == timedelta(0), remaining=remaining, last_used_at=last_used_at)


def try_consume(actor_key, scope_key: str, interval_seconds: int, *, now: datetime | None = None, lock: bool = False) -> CooldownStatus:
	"""
	allowed=True when never used or `interval_seconds` have elapsed since the last stamp
	"""
	now = now or timezone.now()
	return status_for(last_used(actor_key, scope_key, lock=lock), interval_seconds, now)


def require(actor_key, scope_key: str, interval_seconds: int, *, now: datetime | None = None, lock: bool = False) -> CooldownStatus:
	status = try_consume(actor_key, scope_key, interval_seconds, now=now, lock=lock)
	if not status.allowed:
		raise CooldownActive(status.remaining)
	return status


def stamp(actor_key, scope_key: str, *, now: datetime | None = None) -> CooldownRecord:
	now = now or timezone.now()
	record, _ = CooldownRecord.objects.update_or_create(
		actor_key=str(actor_key),
		scope_key=scope_key,
		defaults={"last_used_at": now},
	)
	logger.debug("cooldown stamped %s/%s at %s", actor_key, scope_key, now.isoformat())
	return record
