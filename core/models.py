"""Database models for the establishment backend.


Tables:
- Actor: a player with a display name and a coin balance (never negative)
- PlayerStats: health / hunger / thirst / alcoholism, each within 0..100
- RequestKind / RequestState
- Request: a pending-approval action (consultation, order, bank document)
- CooldownRecord: last use of a rate-limited action per (actor, scope)
- LedgerEntry: append-only record of every balance movement
- MenuItem: an establishment's menu with per-unit stat effects
- Disease / ActiveDisease: roulette afflictions and who carries them
- Voucher: establishment vouchers won on the roulette
- PrizeDraw: audit row for every server-side roulette draw
"""

import uuid
from django.db import models
from django.db.models import Q


STAT_MIN = 0
STAT_MAX = 100


class Actor(models.Model):
	"""
	A player. Balance is whole coins; the check constraint is the last line
	behind the ledger's own insufficient-funds checks.
	"""
	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	display_name = models.CharField(max_length=200)
	balance = models.BigIntegerField(default=0)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		constraints = [
			models.CheckConstraint(condition=Q(balance__gte=0), name="actor_balance_non_negative"),
		]

	def __str__(self):
		return self.display_name


class PlayerStats(models.Model):
	"""
	Survival stats shown under the chat header. Alcoholism: lower is better.
	"""
	actor = models.OneToOneField(Actor, on_delete=models.CASCADE, related_name="stats")
	health = models.IntegerField(default=STAT_MAX)
	hunger = models.IntegerField(default=STAT_MAX)
	thirst = models.IntegerField(default=STAT_MAX)
	alcoholism = models.IntegerField(default=STAT_MIN)
	updated_at = models.DateTimeField(auto_now=True)

	FIELDS = ("health", "hunger", "thirst", "alcoholism")

	def apply(self, deltas=None, values=None):
		"""
		Add `deltas` then overwrite with `values`, clamping every stat to 0..100.
		"""
		for name, delta in (deltas or {}).items():
			if name not in self.FIELDS:
				continue
			setattr(self, name, clamp_stat(getattr(self, name) + int(delta)))
		for name, value in (values or {}).items():
			if name not in self.FIELDS:
				continue
			setattr(self, name, clamp_stat(int(value)))

	def as_dict(self):
		return {name: getattr(self, name) for name in self.FIELDS}


def clamp_stat(value: int) -> int:
	return max(STAT_MIN, min(STAT_MAX, value))


class RequestKind(models.TextChoices):
	CONSULTATION = "consultation", "Consultation"
	ORDER = "order", "Order"
	BANK_DOCUMENT = "bank_document", "Bank document"


class RequestState(models.TextChoices):
	PENDING = "pending", "Pending"
	APPROVED = "approved", "Approved"
	REJECTED = "rejected", "Rejected"


class Request(models.Model):
	"""
	Actor submits, an establishment employee/manager approves or rejects.

	Only `pending` is mutable. At most one pending request per (requester, kind).
	"""
	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	requester = models.ForeignKey(Actor, on_delete=models.PROTECT, related_name="requests")
	kind = models.CharField(max_length=20, choices=RequestKind.choices)
	scope = models.CharField(max_length=32) # establishment: 'hospital' | 'bank' | 'restaurant' ...
	cost = models.BigIntegerField(default=0)
	effect = models.JSONField(default=dict, blank=True)
	state = models.CharField(max_length=16, choices=RequestState.choices, default=RequestState.PENDING)
	reviewer = models.ForeignKey(Actor, null=True, blank=True, on_delete=models.SET_NULL, related_name="reviews")
	result = models.JSONField(default=dict, blank=True)
	created_at = models.DateTimeField(auto_now_add=True)
	reviewed_at = models.DateTimeField(null=True, blank=True)

	class Meta:
		constraints = [
			models.UniqueConstraint(
				fields=["requester", "kind"],
				condition=Q(state="pending"),
				name="one_pending_request_per_kind",
			),
			models.CheckConstraint(condition=Q(cost__gte=0), name="request_cost_non_negative"),
		]
		indexes = [
			models.Index(fields=["scope", "state"]),
		]

	@property
	def is_terminal(self) -> bool:
		return self.state != RequestState.PENDING

	def as_dict(self):
		return {
			"id": str(self.id),
			"requester_id": str(self.requester_id),
			"requester_name": self.requester.display_name,
			"kind": self.kind,
			"scope": self.scope,
			"cost": self.cost,
			"effect": self.effect,
			"state": self.state,
			"reviewer_id": str(self.reviewer_id) if self.reviewer_id else None,
			"result": self.result,
			"created_at": self.created_at.isoformat(),
			"reviewed_at": self.reviewed_at.isoformat() if self.reviewed_at else None,
		}


class CooldownRecord(models.Model):
	"""
	Last time `actor_key` used the action named by `scope_key`.
	actor_key is an Actor id, or '*' for establishment-wide actions.
	"""
	actor_key = models.CharField(max_length=64)
	scope_key = models.CharField(max_length=64)
	last_used_at = models.DateTimeField()

	class Meta:
		unique_together = (("actor_key", "scope_key"),)


class LedgerEntry(models.Model):
	"""
	One row per balance movement. A transfer writes a debit and a credit
	sharing the same ref_id.
	"""
	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	actor = models.ForeignKey(Actor, on_delete=models.PROTECT, related_name="ledger_entries")
	side = models.CharField(max_length=10) # 'debit' | 'credit'
	amount = models.BigIntegerField()
	ref_type = models.CharField(max_length=20) # 'transfer'|'request'|'prize'|'deposit'
	ref_id = models.UUIDField()
	memo = models.CharField(max_length=200, blank=True, default="")
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		indexes = [
			models.Index(fields=["actor", "created_at"]),
		]


class MenuCategory(models.TextChoices):
	DRINKS = "drinks", "Bebidas"
	FOOD = "food", "Comidas"
	ALCOHOLIC = "alcoholic", "Bebidas Alcóolicas"


class MenuItem(models.Model):
	"""
	What an establishment sells. Stat fields are per-unit deltas.
	"""
	id = models.BigAutoField(primary_key=True)
	scope = models.CharField(max_length=32)
	category = models.CharField(max_length=16, choices=MenuCategory.choices)
	name = models.CharField(max_length=120)
	description = models.TextField(blank=True, default="")
	price = models.BigIntegerField()
	hunger = models.IntegerField(default=0)
	thirst = models.IntegerField(default=0)
	alcoholism = models.IntegerField(default=0)

	class Meta:
		unique_together = (("scope", "name"),)
		constraints = [
			models.CheckConstraint(condition=Q(price__gte=0), name="menu_price_non_negative"),
		]

	def as_dict(self):
		return {
			"id": self.id,
			"scope": self.scope,
			"category": self.category,
			"name": self.name,
			"description": self.description,
			"price": self.price,
			"stats": {"hunger": self.hunger, "thirst": self.thirst, "alcoholism": self.alcoholism},
		}


class Disease(models.Model):
	id = models.BigAutoField(primary_key=True)
	name = models.CharField(max_length=120, unique=True)
	description = models.TextField(blank=True, default="")
	health_loss = models.IntegerField()
	cure_cost = models.BigIntegerField(default=0)


class ActiveDisease(models.Model):
	actor = models.ForeignKey(Actor, on_delete=models.CASCADE, related_name="diseases")
	disease = models.ForeignKey(Disease, on_delete=models.CASCADE)
	contracted_at = models.DateTimeField()

	class Meta:
		unique_together = (("actor", "disease"),)


class Voucher(models.Model):
	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	actor = models.ForeignKey(Actor, on_delete=models.CASCADE, related_name="vouchers")
	establishment = models.CharField(max_length=32)
	used = models.BooleanField(default=False)
	created_at = models.DateTimeField(auto_now_add=True)


class PrizeDraw(models.Model):
	"""
	Every roulette spin, drawn and paid out on the server.
	applied=False when the prize had no effect (disease already active).
	"""
	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	actor = models.ForeignKey(Actor, on_delete=models.PROTECT, related_name="prize_draws")
	category = models.CharField(max_length=16) # 'money' | 'voucher' | 'disease'
	prize_key = models.CharField(max_length=64)
	label = models.CharField(max_length=120)
	value = models.BigIntegerField(null=True, blank=True)
	applied = models.BooleanField(default=True)
	drawn_at = models.DateTimeField()

	def as_dict(self):
		return {
			"id": str(self.id),
			"category": self.category,
			"prize_key": self.prize_key,
			"label": self.label,
			"value": self.value,
			"applied": self.applied,
			"drawn_at": self.drawn_at.isoformat(),
		}
