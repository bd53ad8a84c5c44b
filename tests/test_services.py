"""Tests for establishment features: roulette, Rancho, stat decay, menus, demo seed."""

from datetime import timedelta

import pytest

from core import ledger, services
from core.constants import price_to_coins
from core.exceptions import CooldownActive, InsufficientFunds, InvalidAmount, InvalidRequest, NotFound
from core.models import ActiveDisease, Actor, Disease, MenuItem, PlayerStats, PrizeDraw, Voucher


pytestmark = pytest.mark.django_db

# With the default table (10 / 20 / 70 over a total of 100), which needs at
# least one Disease row; without one the table is money 10 / voucher 20.
MONEY = 0.05
VOUCHER = 0.2
DISEASE = 0.9


# ===================================================================
# Roulette
# ===================================================================

class TestRoulette:
	def test_money_prize_is_credited(self, make_actor, fixed_rng, now) -> None:
		actor = make_actor("A", balance=100)
		draw = services.spin_roulette(actor.id, rng=fixed_rng(MONEY), now=now)
		assert draw.category == "money"
		assert draw.value == 500
		assert draw.applied
		assert ledger.balance_of(actor.id) == 600

	def test_voucher_prize(self, make_actor, fixed_rng, now) -> None:
		Disease.objects.create(name="Gripe", health_loss=10)
		actor = make_actor("A")
		draw = services.spin_roulette(actor.id, rng=fixed_rng(VOUCHER, index=1), now=now)
		assert draw.category == "voucher"
		assert list(Voucher.objects.filter(actor=actor).values_list("establishment", flat=True)) == ["bar"]

	def test_disease_prize_costs_health_once(self, make_actor, fixed_rng, now) -> None:
		Disease.objects.create(name="Gripe", health_loss=10)
		actor = make_actor("A", health=95)

		first = services.spin_roulette(actor.id, rng=fixed_rng(DISEASE), now=now)
		assert first.category == "disease"
		assert first.applied
		assert PlayerStats.objects.get(actor=actor).health == 85
		assert ActiveDisease.objects.filter(actor=actor).count() == 1

		second = services.spin_roulette(actor.id, rng=fixed_rng(DISEASE), now=now + timedelta(days=1))
		assert not second.applied
		assert PlayerStats.objects.get(actor=actor).health == 85

	def test_disease_health_loss_clamps_at_zero(self, make_actor, fixed_rng, now) -> None:
		Disease.objects.create(name="Hemorragia", health_loss=40)
		actor = make_actor("A", health=15)
		services.spin_roulette(actor.id, rng=fixed_rng(DISEASE), now=now)
		assert PlayerStats.objects.get(actor=actor).health == 0

	def test_no_diseases_means_no_disease_draw(self, make_actor, fixed_rng, now) -> None:
		actor = make_actor("A")
		# 0.9 of a 30-weight table lands in the voucher band
		draw = services.spin_roulette(actor.id, rng=fixed_rng(DISEASE), now=now)
		assert draw.category == "voucher"

	def test_second_spin_within_a_day_is_blocked(self, make_actor, fixed_rng, now) -> None:
		actor = make_actor("A")
		services.spin_roulette(actor.id, rng=fixed_rng(MONEY), now=now)

		with pytest.raises(CooldownActive) as exc:
			services.spin_roulette(actor.id, rng=fixed_rng(MONEY), now=now + timedelta(hours=3))
		assert exc.value.remaining == timedelta(hours=21)
		assert ledger.balance_of(actor.id) == 500
		assert PrizeDraw.objects.filter(actor=actor).count() == 1

		services.spin_roulette(actor.id, rng=fixed_rng(MONEY), now=now + timedelta(days=1))
		assert ledger.balance_of(actor.id) == 1000

	def test_unknown_actor(self, now) -> None:
		with pytest.raises(NotFound):
			services.spin_roulette("00000000-0000-0000-0000-000000000000", now=now)

	def test_table_caps_disease_count(self, settings) -> None:
		settings.ROULETTE_MAX_DISEASES = 2
		for name in ("Choque", "Febre", "Gripe"):
			Disease.objects.create(name=name, health_loss=5)
		disease = [c for c in services.roulette_table().categories if c.name == "disease"][0]
		assert [e.label for e in disease.entries] == ["Choque", "Febre"]


# ===================================================================
# Rancho
# ===================================================================

class TestRancho:
	def test_restores_everyone_once_a_day(self, make_actor, now) -> None:
		manager = make_actor("Gerente")
		a = make_actor("A", health=10, hunger=20, thirst=30, alcoholism=70)
		b = Actor.objects.create(display_name="Sem stats")

		assert services.use_rancho(manager.id, now=now) == 3
		for actor in (a, b):
			stats = PlayerStats.objects.get(actor=actor)
			assert stats.as_dict() == {"health": 100, "hunger": 100, "thirst": 100, "alcoholism": 0}

		with pytest.raises(CooldownActive):
			services.use_rancho(a.id, now=now + timedelta(hours=12))

		assert services.use_rancho(a.id, now=now + timedelta(days=1)) == 3

	def test_only_the_hospital_has_a_rancho(self, make_actor, now) -> None:
		manager = make_actor("Gerente")
		sick = make_actor("Doente", health=5)
		for scope in ("bar", "restaurant", "bakery", "bank"):
			with pytest.raises(NotFound):
				services.use_rancho(manager.id, scope, now=now)
		assert PlayerStats.objects.get(actor=sick).health == 5
		with pytest.raises(NotFound):
			services.cooldown_status(manager.id, "rancho:bar", now=now)

	def test_establishment_list_comes_from_settings(self, make_actor, settings, now) -> None:
		settings.RANCHO_ESTABLISHMENTS = ["hospital", "bar"]
		manager = make_actor("Gerente")
		services.use_rancho(manager.id, "hospital", now=now)
		services.use_rancho(manager.id, "bar", now=now)
		assert not services.cooldown_status(manager.id, "rancho:bar", now=now).allowed


# ===================================================================
# Stat decay
# ===================================================================

class TestStatsDecay:
	@pytest.fixture(autouse=True)
	def decay_rules(self, settings):
		settings.STATS_DECAY = {
			"alcoholism": {"interval_seconds": 180, "delta": -2},
			"hunger": {"interval_seconds": 1800, "delta": -5},
		}

	def test_first_call_only_starts_clocks(self, make_actor, now) -> None:
		actor = make_actor("A", hunger=80, alcoholism=50)
		stats = services.apply_stats_decay(actor.id, now=now)
		assert (stats.hunger, stats.alcoholism) == (80, 50)

	def test_whole_intervals_are_applied(self, make_actor, now) -> None:
		actor = make_actor("A", hunger=80, alcoholism=50)
		services.apply_stats_decay(actor.id, now=now)

		stats = services.apply_stats_decay(actor.id, now=now + timedelta(minutes=7))
		assert stats.alcoholism == 46
		assert stats.hunger == 80

		stats = services.apply_stats_decay(actor.id, now=now + timedelta(minutes=61))
		assert stats.hunger == 70
		# partial interval carried over: last tick was at +6min, 55 more minutes is 18 ticks
		assert stats.alcoholism == 10

	def test_decay_clamps_at_zero(self, make_actor, now) -> None:
		actor = make_actor("A", alcoholism=3)
		services.apply_stats_decay(actor.id, now=now)
		stats = services.apply_stats_decay(actor.id, now=now + timedelta(hours=1))
		assert stats.alcoholism == 0

	def test_cooldown_status_for_decay(self, make_actor, now) -> None:
		actor = make_actor("A")
		services.apply_stats_decay(actor.id, now=now)
		status = services.cooldown_status(actor.id, "decay:hunger", now=now + timedelta(minutes=10))
		assert not status.allowed
		assert status.remaining == timedelta(minutes=20)

	def test_unknown_cooldown(self, make_actor) -> None:
		actor = make_actor("A")
		with pytest.raises(NotFound):
			services.cooldown_status(actor.id, "decay:happiness")
		with pytest.raises(NotFound):
			services.cooldown_status(actor.id, "lottery")


# ===================================================================
# Menus and orders
# ===================================================================

class TestPrices:
	@pytest.mark.parametrize("price, coins", [
		("R$ 12,50", 13),
		("R$ 12,49", 12),
		("R$ 1.234,00", 1234),
		("12.5", 13),
		(7, 7),
		("0", 0),
	])
	def test_price_to_coins(self, price, coins) -> None:
		assert price_to_coins(price) == coins

	@pytest.mark.parametrize("price", ["abc", "-1", "R$ -3,00", True, "NaN"])
	def test_invalid_prices(self, price) -> None:
		with pytest.raises(InvalidAmount):
			price_to_coins(price)


class TestMenu:
	def test_save_updates_by_name(self) -> None:
		services.save_menu_item("bar", name="Água", category="drinks", price="R$ 5,00", thirst=30)
		services.save_menu_item("bar", name="Água", category="drinks", price="R$ 6,00", thirst=35)
		item = MenuItem.objects.get(scope="bar", name="Água")
		assert (item.price, item.thirst) == (6, 35)
		assert [i.name for i in services.menu_for("bar")] == ["Água"]

	def test_bad_category(self) -> None:
		with pytest.raises(InvalidRequest):
			services.save_menu_item("bar", name="X", category="desserts", price=1)

	def test_bad_stat_value(self) -> None:
		with pytest.raises(InvalidRequest):
			services.save_menu_item("bar", name="X", category="food", price=1, hunger="lots")

	def test_hospital_has_no_menu(self) -> None:
		with pytest.raises(NotFound):
			services.menu_for("hospital")

	def test_order_errors(self, make_actor) -> None:
		item = services.save_menu_item("bar", name="Água", category="drinks", price=5)
		actor = make_actor("A", balance=100)
		with pytest.raises(InvalidRequest):
			services.place_order(actor.id, "bar", [])
		with pytest.raises(InvalidRequest):
			services.place_order(actor.id, "bar", [{"item_id": item.id, "quantity": 0}])
		with pytest.raises(InvalidRequest):
			services.place_order(actor.id, "bar", ["Água"])
		with pytest.raises(NotFound):
			services.place_order(actor.id, "bar", [{"item_id": item.id + 1000}])
		with pytest.raises(NotFound):
			services.place_order(actor.id, "bakery", [{"item_id": item.id}])

	@pytest.mark.parametrize("lines", [
		[{"item_id": "abc"}],
		[{"item_id": True}],
		[{"quantity": 1}],
		[{"item_id": 1.5}],
		5,
		{"item_id": 1},
		"Água",
	])
	def test_malformed_order_lines(self, make_actor, lines) -> None:
		services.save_menu_item("bar", name="Água", category="drinks", price=5)
		actor = make_actor("A", balance=100)
		with pytest.raises(InvalidRequest):
			services.place_order(actor.id, "bar", lines)

	def test_non_text_fields(self, make_actor) -> None:
		actor = make_actor("A")
		with pytest.raises(InvalidRequest):
			services.save_menu_item("bar", name=42, category="drinks", price=5)
		with pytest.raises(InvalidRequest):
			services.save_menu_item("bar", name="Água", category="drinks", price=5, description=["x"])
		with pytest.raises(InvalidRequest):
			services.request_bank_document(actor.id, reason=7)
		with pytest.raises(InvalidRequest):
			services.request_bank_document(actor.id, reason="Financiamento", document_type=None)

	def test_order_beyond_balance(self, make_actor) -> None:
		item = services.save_menu_item("bar", name="Vinho", category="alcoholic", price=50)
		actor = make_actor("A", balance=60)
		with pytest.raises(InsufficientFunds):
			services.place_order(actor.id, "bar", [{"item_id": item.id, "quantity": 2}])

	def test_blank_document_reason(self, make_actor) -> None:
		actor = make_actor("A")
		with pytest.raises(InvalidRequest):
			services.request_bank_document(actor.id, reason="   ")


class TestDemoSeed:
	def test_seed_is_idempotent(self) -> None:
		first = services.DemoServices.seed_demo_actors()
		second = services.DemoServices.seed_demo_actors()
		assert [a.id for a in first] == [a.id for a in second]
		assert [(a.display_name, a.balance) for a in second] == [("Arthur", 1000), ("Beatriz", 200)]
		assert Disease.objects.count() == 10
		assert MenuItem.objects.filter(scope="bar").count() == 3
