"""Establishment features built on the ledger, lifecycle and cooldown gate.

This module coordinates: hospital consultations, menu orders, bank documents,
the daily roulette (drawn and paid on the server), the Rancho heal and stat decay.
Critical mutations are wrapped in @transaction.atomic to keep state consistent.
"""
import logging
import random
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from . import cooldown, ledger, lifecycle
from .constants import FOOD_ESTABLISHMENTS, SCOPE_WIDE, price_to_coins
from .drawer import Outcome, OutcomeTable
from .exceptions import CooldownActive, InvalidRequest, NotFound
from .models import (
	STAT_MAX, STAT_MIN, ActiveDisease, Actor, Disease, MenuCategory, MenuItem, PlayerStats, PrizeDraw, RequestKind,
	Voucher,
)

logger = logging.getLogger(__name__)

ROULETTE_SCOPE = "roulette"

_rng = random.SystemRandom()


def stats_for(actor_id) -> PlayerStats:
	stats, _ = PlayerStats.objects.get_or_create(actor_id=ledger.as_actor_id(actor_id))
	return stats


# --- Hospital -----------------------------------------------------------------

def request_consultation(actor_id, consultation_type: str):
	"""
	Ask the hospital for a consultation; the manager approves and only then is it paid.
	"""
	catalogue = getattr(settings, "CONSULTATION_TYPES", {})
	entry = catalogue.get(consultation_type)
	if not entry:
		raise InvalidRequest(f"unknown consultation type: {consultation_type}")

	effect = {"consultation_type": consultation_type, "stats": {"health": entry["health"]}}
	if entry.get("full"):
		effect["set_stats"] = {"health": 100}
	return lifecycle.submit(actor_id, RequestKind.CONSULTATION, "hospital", entry["cost"], effect)


def rancho_scope(establishment: str) -> str:
	if establishment not in getattr(settings, "RANCHO_ESTABLISHMENTS", ["hospital"]):
		raise NotFound(f"{establishment} has no rancho")
	return f"rancho:{establishment}"


@transaction.atomic
def use_rancho(actor_id, establishment: str = "hospital", *, now=None) -> int:
	"""
	Rancho dos Trabalhadores: restore every player's stats, once per day.
	Only offered by the establishments in RANCHO_ESTABLISHMENTS.
	Returns the number of players restored.
	"""
	now = now or timezone.now()
	interval = getattr(settings, "RANCHO_COOLDOWN_SECONDS", 24 * 60 * 60)
	scope_key = rancho_scope(establishment)
	cooldown.require(SCOPE_WIDE, scope_key, interval, now=now, lock=True)

	# every actor gets a stats row so nobody is skipped
	missing = Actor.objects.filter(stats__isnull=True).values_list("id", flat=True)
	PlayerStats.objects.bulk_create([PlayerStats(actor_id=a) for a in missing])

	restored = PlayerStats.objects.update(
		health=STAT_MAX, hunger=STAT_MAX, thirst=STAT_MAX, alcoholism=STAT_MIN, updated_at=now,
	)
	try:
		with transaction.atomic():
			cooldown.stamp(SCOPE_WIDE, scope_key, now=now)
	except IntegrityError:
		# concurrent first use; the other one stamped
		raise CooldownActive(cooldown.try_consume(SCOPE_WIDE, scope_key, interval, now=now).remaining)

	logger.info("rancho used at %s by %s: %d players restored", establishment, actor_id, restored)
	return restored


# --- Menus & orders -----------------------------------------------------------

def _check_establishment(scope: str):
	if scope not in FOOD_ESTABLISHMENTS:
		raise NotFound(f"{scope} has no menu")


def menu_for(scope: str):
	_check_establishment(scope)
	return MenuItem.objects.filter(scope=scope).order_by("category", "name")


def save_menu_item(scope: str, *, name: str, category: str, price, description: str = "", hunger: int = 0, thirst: int = 0, alcoholism: int = 0) -> MenuItem:
	"""
	Create or update an item by (scope, name). Price accepts "R$ 12,50" notation.
	"""
	_check_establishment(scope)
	if not isinstance(name, str) or not name.strip():
		raise InvalidRequest("item name required")
	if not isinstance(description, str):
		raise InvalidRequest("item description must be text")
	if category not in MenuCategory.values:
		raise InvalidRequest(f"unknown menu category: {category}")
	item, _ = MenuItem.objects.update_or_create(
		scope=scope,
		name=name.strip(),
		defaults=dict(
			category=category,
			description=description,
			price=price_to_coins(price),
			hunger=_stat_delta("hunger", hunger),
			thirst=_stat_delta("thirst", thirst),
			alcoholism=_stat_delta("alcoholism", alcoholism),
		),
	)
	return item


def _stat_delta(name: str, value) -> int:
	if isinstance(value, bool):
		raise InvalidRequest(f"invalid {name}: {value!r}")
	try:
		return int(value)
	except (TypeError, ValueError):
		raise InvalidRequest(f"invalid {name}: {value!r}")


def place_order(actor_id, scope: str, lines):
	"""
	lines: [{"item_id": int, "quantity": int}]. Cost and stat effect are
	computed from the menu here, never taken from the caller.
	"""
	_check_establishment(scope)
	if not isinstance(lines, list) or not lines:
		raise InvalidRequest("order needs a list of items")
	if not all(isinstance(l, dict) for l in lines):
		raise InvalidRequest("order lines must be objects")
	for line in lines:
		item_id = line.get("item_id")
		if isinstance(item_id, bool) or not isinstance(item_id, int):
			raise InvalidRequest(f"invalid item id: {item_id!r}")

	items = {i.id: i for i in MenuItem.objects.filter(scope=scope, id__in=[l["item_id"] for l in lines])}
	cost = 0
	stats = {"hunger": 0, "thirst": 0, "alcoholism": 0}
	summary = []
	for line in lines:
		item = items.get(line["item_id"])
		if item is None:
			raise NotFound(f"menu item not found: {line['item_id']}")
		quantity = line.get("quantity", 1)
		if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
			raise InvalidRequest(f"invalid quantity for {item.name}: {quantity!r}")
		cost += item.price * quantity
		stats["hunger"] += item.hunger * quantity
		stats["thirst"] += item.thirst * quantity
		stats["alcoholism"] += item.alcoholism * quantity
		summary.append({"item_id": item.id, "name": item.name, "quantity": quantity, "price": item.price})

	effect = {"items": summary, "stats": stats, "pay_reviewer": True}
	return lifecycle.submit(actor_id, RequestKind.ORDER, scope, cost, effect)


# --- Bank ---------------------------------------------------------------------

def request_bank_document(actor_id, *, document_type: str = "Extrato", reason: str = "", amount: str = "", description: str = ""):
	for field, value in (("document_type", document_type), ("reason", reason), ("amount", amount), ("description", description)):
		if not isinstance(value, str):
			raise InvalidRequest(f"{field} must be text")
	if not reason.strip():
		raise InvalidRequest("document reason required")
	effect = {
		"document_type": document_type,
		"reason": reason.strip(),
		"amount": amount,
		"description": description,
		"issue_document": True,
	}
	return lifecycle.submit(actor_id, RequestKind.BANK_DOCUMENT, "bank", 0, effect)


# --- Roulette -----------------------------------------------------------------

def disease_outcomes():
	limit = getattr(settings, "ROULETTE_MAX_DISEASES", 12)
	return [
		Outcome(
			category="disease",
			key=f"disease-{d.id}",
			label=d.name,
			value=d.health_loss,
			data={"disease_id": d.id, "health_loss": d.health_loss, "description": d.description},
		)
		for d in Disease.objects.order_by("name")[:limit]
	]


def roulette_table() -> OutcomeTable:
	return OutcomeTable.from_config(
		getattr(settings, "ROULETTE_PRIZES", []),
		extra_entries={"disease": disease_outcomes()},
	)


@transaction.atomic
def spin_roulette(actor_id, *, rng=None, now=None) -> PrizeDraw:
	"""
	Daily spin: check cooldown, draw, pay out and stamp in one transaction.
	"""
	now = now or timezone.now()
	actor_id = ledger.as_actor_id(actor_id)
	# serializes concurrent spins by the same actor, even before the first stamp exists
	try:
		actor = Actor.objects.select_for_update().get(id=actor_id)
	except Actor.DoesNotExist:
		raise NotFound(f"actor not found: {actor_id}")

	interval = getattr(settings, "ROULETTE_COOLDOWN_SECONDS", 24 * 60 * 60)
	cooldown.require(actor.id, ROULETTE_SCOPE, interval, now=now, lock=True)

	outcome = roulette_table().draw(rng or _rng)
	applied = _pay_out(actor, outcome, now)
	cooldown.stamp(actor.id, ROULETTE_SCOPE, now=now)

	draw = PrizeDraw.objects.create(
		actor=actor,
		category=outcome.category,
		prize_key=outcome.key,
		label=outcome.label,
		value=outcome.value,
		applied=applied,
		drawn_at=now,
	)
	logger.info("roulette: %s drew %s (applied=%s)", actor.id, outcome.key, applied)
	return draw


def _pay_out(actor: Actor, outcome: Outcome, now) -> bool:
	if outcome.category == "money":
		ledger.credit(actor.id, int(outcome.value), ref_type="prize", memo=outcome.key)
		return True

	if outcome.category == "voucher":
		Voucher.objects.create(actor=actor, establishment=outcome.data["establishment"])
		return True

	if outcome.category == "disease":
		disease = Disease.objects.get(id=outcome.data["disease_id"])
		_, created = ActiveDisease.objects.get_or_create(actor=actor, disease=disease, defaults={"contracted_at": now})
		if not created:
			return False
		stats, _ = PlayerStats.objects.select_for_update().get_or_create(actor=actor)
		stats.apply(deltas={"health": -disease.health_loss})
		stats.save()
		return True

	raise InvalidRequest(f"unknown prize category: {outcome.category}")


# --- Stat decay ---------------------------------------------------------------

def decay_scope(stat: str) -> str:
	return f"decay:{stat}"


def cooldown_status(actor_id, scope_key: str, *, now=None) -> cooldown.CooldownStatus:
	"""
	Status of one of the known gates: roulette, rancho:<establishment>, decay:<stat>
	"""
	if scope_key == ROULETTE_SCOPE:
		interval = getattr(settings, "ROULETTE_COOLDOWN_SECONDS", 24 * 60 * 60)
		return cooldown.try_consume(ledger.as_actor_id(actor_id), scope_key, interval, now=now)

	prefix, _, name = scope_key.partition(":")
	if prefix == "rancho" and name:
		interval = getattr(settings, "RANCHO_COOLDOWN_SECONDS", 24 * 60 * 60)
		return cooldown.try_consume(SCOPE_WIDE, rancho_scope(name), interval, now=now)
	if prefix == "decay" and name in getattr(settings, "STATS_DECAY", {}):
		interval = settings.STATS_DECAY[name]["interval_seconds"]
		return cooldown.try_consume(ledger.as_actor_id(actor_id), scope_key, interval, now=now)

	raise NotFound(f"unknown cooldown: {scope_key}")


@transaction.atomic
def apply_stats_decay(actor_id, *, now=None) -> PlayerStats:
	"""
	Apply every whole decay interval elapsed since the last tick of each stat.
	The first call only starts the clocks.
	"""
	now = now or timezone.now()
	actor_id = ledger.as_actor_id(actor_id)
	if not Actor.objects.filter(id=actor_id).exists():
		raise NotFound(f"actor not found: {actor_id}")
	stats, _ = PlayerStats.objects.select_for_update().get_or_create(actor_id=actor_id)

	deltas = {}
	for stat, rule in getattr(settings, "STATS_DECAY", {}).items():
		interval = rule["interval_seconds"]
		status = cooldown.try_consume(actor_id, decay_scope(stat), interval, now=now, lock=True)
		if status.last_used_at is None:
			cooldown.stamp(actor_id, decay_scope(stat), now=now)
			continue
		if not status.allowed:
			continue
		ticks = int((now - status.last_used_at).total_seconds() // interval)
		deltas[stat] = rule["delta"] * ticks
		# advance by whole intervals so the partial one carries over
		cooldown.stamp(actor_id, decay_scope(stat), now=status.last_used_at + timedelta(seconds=interval * ticks))

	if deltas:
		stats.apply(deltas=deltas)
		stats.save()
		logger.debug("stats decay for %s: %s", actor_id, deltas)
	return stats


class DemoServices:

	@staticmethod
	@transaction.atomic
	def seed_demo_actors():
		"""
		Create (or fetch) the demo players, the disease list and a sample bar menu
		"""
		actors = []
		for row in getattr(settings, "DEMO_ACTORS", []):
			actor, created = Actor.objects.get_or_create(display_name=row["display_name"], defaults={"balance": 0})
			if created and row.get("balance"):
				ledger.credit(actor.id, row["balance"], ref_type="deposit", memo="seed")
				actor.refresh_from_db()
			PlayerStats.objects.get_or_create(actor=actor)
			actors.append(actor)

		for name, loss in (
			("Gripe", 10), ("Náusea", 5), ("Dor de Cabeça", 5), ("Resfriado", 10), ("Infecção", 20),
			("Envenenamento", 30), ("Hemorragia", 40), ("Febre", 15), ("Hipotermia", 25), ("Choque", 35),
		):
			Disease.objects.get_or_create(name=name, defaults={"health_loss": loss, "cure_cost": loss * 10})

		save_menu_item("bar", name="Água", category=MenuCategory.DRINKS, price="R$ 5,00", thirst=30)
		save_menu_item("bar", name="Pão de Queijo", category=MenuCategory.FOOD, price="R$ 12,50", hunger=25)
		save_menu_item("bar", name="Hidromel", category=MenuCategory.ALCOHOLIC, price="R$ 20,00", thirst=10, alcoholism=15)
		return actors

	@staticmethod
	def demo_credit(actor_id, amount: int, memo: str = "demo"):
		"""
		Simulate coins arriving from outside the game economy
		"""
		return ledger.credit(actor_id, amount, ref_type="deposit", memo=memo)
