"""Coin helpers and request routing shared across the app.


- price_to_coins converts a menu price string ("R$ 12,50") to whole coins.
- REQUEST_KIND_SCOPES says which establishments accept which request kind.
- REVIEW_ROLE says which panel role may approve/reject each kind.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .exceptions import InvalidAmount, NotFound
from .models import RequestKind


ROLE_NONE = "none"
ROLE_EMPLOYEE = "employee"
ROLE_MANAGER = "manager"

# Higher rank includes everything below it.
ROLE_RANK = {ROLE_NONE: 0, ROLE_EMPLOYEE: 1, ROLE_MANAGER: 2}

FOOD_ESTABLISHMENTS = ("restaurant", "bar", "bakery")

REQUEST_KIND_SCOPES = {
	RequestKind.CONSULTATION: ("hospital",),
	RequestKind.ORDER: FOOD_ESTABLISHMENTS,
	RequestKind.BANK_DOCUMENT: ("bank",),
}

REVIEW_ROLE = {
	RequestKind.CONSULTATION: ROLE_MANAGER,
	RequestKind.ORDER: ROLE_EMPLOYEE,
	RequestKind.BANK_DOCUMENT: ROLE_EMPLOYEE,
}

# actor_key for cooldowns that belong to a whole establishment
SCOPE_WIDE = "*"


def review_role_for_scope(scope: str) -> str:
	"""
	Panel role needed to work the request queue of an establishment
	"""
	for kind, scopes in REQUEST_KIND_SCOPES.items():
		if scope in scopes:
			return REVIEW_ROLE[kind]
	raise NotFound(f"{scope} has no request queue")


def price_to_coins(price: str | int | Decimal) -> int:
	"""
	Convert a menu price ("R$ 12,50", "12.5", 12) to whole coins, rounding half up
	"""
	if isinstance(price, bool):
		raise InvalidAmount(f"invalid price: {price!r}")
	if isinstance(price, int):
		coins = price
	else:
		text = str(price).replace("R$", "").strip()
		if "," in text:
			# Brazilian notation: '.' groups thousands, ',' separates cents
			text = text.replace(".", "").replace(",", ".")
		try:
			coins = int(Decimal(text).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
		except (InvalidOperation, ValueError):
			raise InvalidAmount(f"invalid price: {price!r}")
	if coins < 0:
		raise InvalidAmount(f"invalid price: {price!r}")
	return coins


def coin_amount(value) -> int:
	"""
	Validate a positive whole-coin amount coming from a caller
	"""
	if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
		raise InvalidAmount(f"amount must be a positive whole number of coins, got {value!r}")
	return value
