"""Weighted prize drawing for the roulette.

Pure computation: no database, no clock. A table is a list of weighted
categories, each holding one or more prizes. A draw picks a category with
probability weight / total_weight, then one of its prizes uniformly.

Categories without entries (e.g. no diseases configured yet) or without
positive weight are dropped when the table is built, so a draw can never
land on an empty category.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence


@dataclass(frozen=True)
class Outcome:
	"""A single prize a spin can land on."""
	category: str
	key: str
	label: str
	value: int | None = None
	data: dict[str, Any] = field(default_factory=dict)

	def as_dict(self) -> dict[str, Any]:
		return {
			"category": self.category,
			"key": self.key,
			"label": self.label,
			"value": self.value,
			"data": dict(self.data),
		}


@dataclass(frozen=True)
class PrizeCategory:
	name: str
	weight: float
	entries: tuple[Outcome, ...]


class OutcomeTable:
	"""Ordered, normalized weight space over prize categories.

	Usage:
		table = OutcomeTable.build([
			PrizeCategory("money", 10, money_prizes),
			PrizeCategory("voucher", 20, voucher_prizes),
			PrizeCategory("disease", 70, disease_prizes),
		])
		outcome = table.draw(random.Random(42))
	"""

	def __init__(self, categories: Sequence[PrizeCategory]) -> None:
		self._categories = tuple(categories)
		self._total = float(sum(c.weight for c in self._categories))

	@classmethod
	def build(cls, categories: Iterable[PrizeCategory]) -> "OutcomeTable":
		kept = [c for c in categories if c.entries and c.weight > 0]
		if not kept:
			raise ValueError("outcome table has no drawable category")
		return cls(kept)

	@classmethod
	def from_config(
		cls,
		config: Iterable[dict[str, Any]],
		extra_entries: dict[str, Iterable[Outcome]] | None = None,
	) -> "OutcomeTable":
		"""Build from settings-style dicts:
		{"name": ..., "weight": ..., "entries": [{"key", "label", "value"?, "data"?}]}.

		extra_entries appends prizes loaded elsewhere (the disease table)
		to the category of the same name.
		"""
		extra_entries = extra_entries or {}
		categories = []
		for row in config:
			name = row["name"]
			entries = [
				Outcome(
					category=name,
					key=e["key"],
					label=e["label"],
					value=e.get("value"),
					data=dict(e.get("data") or {}),
				)
				for e in row.get("entries", [])
			]
			entries.extend(extra_entries.get(name, ()))
			categories.append(PrizeCategory(name=name, weight=row["weight"], entries=tuple(entries)))
		return cls.build(categories)

	@property
	def categories(self) -> tuple[PrizeCategory, ...]:
		return self._categories

	@property
	def total_weight(self) -> float:
		return self._total

	def probabilities(self) -> dict[str, float]:
		return {c.name: c.weight / self._total for c in self._categories}

	def pick_category(self, r: float) -> PrizeCategory:
		"""Category whose band contains r, for r in [0, total_weight)."""
		acc = 0.0
		for category in self._categories:
			acc += category.weight
			if r < acc:
				return category
		# r == total only through float rounding
		return self._categories[-1]

	def draw(self, rng: random.Random | None = None) -> Outcome:
		rng = rng or random.SystemRandom()
		category = self.pick_category(rng.random() * self._total)
		return rng.choice(category.entries)
