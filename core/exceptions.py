"""Domain errors raised by the core services.

Every error here is an expected, user-facing condition. The API turns them
into {"error": code, "message": ...} responses with the attached status.
"""

import math
from datetime import timedelta


class RealmError(Exception):
	"""
	Base class: `code` is the stable machine-readable identifier.
	"""
	code = "error"
	status = 400

	def __init__(self, message: str | None = None):
		self.message = message or self.code
		super().__init__(self.message)

	def as_dict(self) -> dict:
		return {"error": self.code, "message": self.message}


class InvalidAmount(RealmError):
	code = "invalid_amount"


class InvalidRequest(RealmError):
	code = "invalid_request"


class InsufficientFunds(RealmError):
	code = "insufficient_funds"


class NotFound(RealmError):
	code = "not_found"
	status = 404


class InvalidSecret(RealmError):
	code = "invalid_secret"
	status = 403


class InvalidStateTransition(RealmError):
	code = "invalid_state_transition"
	status = 409


class AlreadyResolved(InvalidStateTransition):
	code = "already_resolved"


class DuplicatePendingRequest(RealmError):
	code = "duplicate_pending_request"
	status = 409


class CooldownActive(RealmError):
	code = "cooldown_active"
	status = 429

	def __init__(self, remaining: timedelta, message: str | None = None):
		self.remaining = remaining
		super().__init__(message or f"cooldown active for {remaining_seconds(remaining)}s")

	def as_dict(self) -> dict:
		data = super().as_dict()
		data["remaining_seconds"] = remaining_seconds(self.remaining)
		return data


def remaining_seconds(remaining: timedelta) -> int:
	"""Whole seconds left, rounded up so a gate that is still closed never reports 0."""
	return max(0, math.ceil(remaining.total_seconds()))
