"""Coin balances: transfers, credits (prize payouts) and debits (purchases).

Every mutation runs in @transaction.atomic and locks the affected Actor rows
with select_for_update(), so concurrent movements touching the same actor
are serialized and a balance can never be observed below zero.
"""

import logging
import uuid

from django.db import transaction

from .constants import coin_amount
from .exceptions import InsufficientFunds, InvalidAmount, NotFound
from .models import Actor, LedgerEntry

logger = logging.getLogger(__name__)


def as_actor_id(actor_id) -> uuid.UUID:
	if isinstance(actor_id, uuid.UUID):
		return actor_id
	try:
		return uuid.UUID(str(actor_id))
	except ValueError:
		raise NotFound(f"actor not found: {actor_id}")


def _lock_actors(*actor_ids):
	"""
	Lock rows in primary-key order so opposite transfers can't deadlock
	"""
	ids = sorted({as_actor_id(a) for a in actor_ids})
	rows = {a.id: a for a in Actor.objects.select_for_update().filter(id__in=ids).order_by("id")}
	missing = [a for a in ids if a not in rows]
	if missing:
		raise NotFound(f"actor not found: {missing[0]}")
	return rows


def balance_of(actor_id) -> int:
	try:
		return Actor.objects.values_list("balance", flat=True).get(id=as_actor_id(actor_id))
	except Actor.DoesNotExist:
		raise NotFound(f"actor not found: {actor_id}")


@transaction.atomic
def transfer(from_id, to_id, amount: int, *, memo: str = "") -> uuid.UUID:
	"""
	Move `amount` coins from one actor to another as a single unit.
	Returns the ref_id shared by the two ledger entries.
	"""
	coin_amount(amount)
	if as_actor_id(from_id) == as_actor_id(to_id):
		raise InvalidAmount("cannot transfer to the same actor")

	rows = _lock_actors(from_id, to_id)
	sender, recipient = rows[as_actor_id(from_id)], rows[as_actor_id(to_id)]
	if sender.balance < amount:
		raise InsufficientFunds(f"balance {sender.balance} < {amount}")

	sender.balance -= amount
	recipient.balance += amount
	sender.save(update_fields=["balance"])
	recipient.save(update_fields=["balance"])

	ref_id = uuid.uuid4()
	LedgerEntry.objects.bulk_create([
		LedgerEntry(actor=sender, side="debit", amount=amount, ref_type="transfer", ref_id=ref_id, memo=memo),
		LedgerEntry(actor=recipient, side="credit", amount=amount, ref_type="transfer", ref_id=ref_id, memo=memo),
	])
	logger.info("transfer %s -> %s: %d coins (ref %s)", sender.id, recipient.id, amount, ref_id)
	return ref_id


@transaction.atomic
def credit(actor_id, amount: int, *, ref_type: str = "deposit", ref_id=None, memo: str = "") -> int:
	"""
	Add coins to one actor (roulette money, demo deposits). Returns the new balance.
	"""
	coin_amount(amount)
	actor = _lock_actors(actor_id)[as_actor_id(actor_id)]
	actor.balance += amount
	actor.save(update_fields=["balance"])
	LedgerEntry.objects.create(
		actor=actor, side="credit", amount=amount, ref_type=ref_type, ref_id=ref_id or uuid.uuid4(), memo=memo,
	)
	logger.info("credit %s: %d coins (%s)", actor.id, amount, ref_type)
	return actor.balance


@transaction.atomic
def debit(actor_id, amount: int, *, ref_type: str = "purchase", ref_id=None, memo: str = "") -> int:
	"""
	Remove coins from one actor (settled purchases, fees). Returns the new balance.
	"""
	coin_amount(amount)
	actor = _lock_actors(actor_id)[as_actor_id(actor_id)]
	if actor.balance < amount:
		raise InsufficientFunds(f"balance {actor.balance} < {amount}")
	actor.balance -= amount
	actor.save(update_fields=["balance"])
	LedgerEntry.objects.create(
		actor=actor, side="debit", amount=amount, ref_type=ref_type, ref_id=ref_id or uuid.uuid4(), memo=memo,
	)
	logger.info("debit %s: %d coins (%s)", actor.id, amount, ref_type)
	return actor.balance
