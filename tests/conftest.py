"""Shared fixtures: actors with stats, fixed clocks and known panel secrets."""

from datetime import datetime, timezone

import pytest

from core.models import Actor, PlayerStats


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

PANEL_SECRETS = {
	"bank": {"employee": "bank-employee"},
	"hospital": {"manager": "hospital-manager", "employee": "hospital-employee"},
	"restaurant": {"manager": "restaurant-manager", "employee": "restaurant-employee"},
	"bar": {"manager": "bar-manager", "employee": "bar-employee"},
	"bakery": {"manager": "bakery-manager", "employee": "bakery-employee"},
}


@pytest.fixture(autouse=True)
def panel_secrets(settings):
	settings.ESTABLISHMENT_SECRETS = PANEL_SECRETS
	return PANEL_SECRETS


@pytest.fixture
def make_actor(db):
	def _make(name: str = "Arthur", balance: int = 0, **stats) -> Actor:
		actor = Actor.objects.create(display_name=name, balance=balance)
		PlayerStats.objects.create(actor=actor, **stats)
		return actor
	return _make


@pytest.fixture
def now():
	return NOW


class FixedRng:
	"""Stands in for random.Random: fixed random() value, first entry on choice()."""

	def __init__(self, r: float, index: int = 0):
		self.r = r
		self.index = index

	def random(self) -> float:
		return self.r

	def choice(self, seq):
		return seq[self.index]


@pytest.fixture
def fixed_rng():
	return FixedRng
