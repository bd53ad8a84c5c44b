"""Request lifecycle shared by consultations, orders and bank documents.

pending -> approved | rejected. Both outcomes are terminal.

submit() records a pending request without touching balances. review()
locks the request row, and on approval applies the request's effect
(debit or pay the reviewer, stat changes, document issue) in the same
transaction before marking it approved. If the effect fails the whole
review rolls back and the request stays pending.

Effect keys (JSON on the request):
- pay_reviewer: cost goes to the reviewer instead of being destroyed
- stats: {stat: delta} added and clamped to 0..100
- set_stats: {stat: value} absolute values
- issue_document: store a generated document code in request.result
"""

import logging
import secrets
import string
import uuid

from django.db import IntegrityError, transaction
from django.utils import timezone

from . import ledger
from .constants import REQUEST_KIND_SCOPES
from .exceptions import (
	AlreadyResolved, DuplicatePendingRequest, InsufficientFunds, InvalidAmount, InvalidRequest,
	InvalidStateTransition, NotFound,
)
from .models import Actor, PlayerStats, Request, RequestKind, RequestState

logger = logging.getLogger(__name__)

APPROVE = "approve"
REJECT = "reject"

ALLOWED = {
	RequestState.PENDING: {RequestState.APPROVED, RequestState.REJECTED},
	RequestState.APPROVED: set(),
	RequestState.REJECTED: set(),
}

DECISIONS = {
	APPROVE: RequestState.APPROVED,
	REJECT: RequestState.REJECTED,
}

DOCUMENT_ALPHABET = string.ascii_uppercase + string.digits


def assert_transition(old: str, new: str) -> None:
	if new not in ALLOWED.get(old, set()):
		if old != RequestState.PENDING:
			raise AlreadyResolved(f"request already {old}")
		raise InvalidStateTransition(f"illegal request transition: {old} -> {new}")


def _validate_cost(cost) -> int:
	if isinstance(cost, bool) or not isinstance(cost, int) or cost < 0:
		raise InvalidAmount(f"cost must be a non-negative whole number of coins, got {cost!r}")
	return cost


@transaction.atomic
def submit(requester_id, kind: str, scope: str, cost: int, effect: dict | None = None) -> Request:
	"""
	Create a pending request. Nothing is debited until approval.
	"""
	cost = _validate_cost(cost)
	if kind not in RequestKind.values:
		raise NotFound(f"unknown request kind: {kind}")
	if scope not in REQUEST_KIND_SCOPES.get(kind, ()):
		raise NotFound(f"{scope} does not accept {kind} requests")

	requester_id = ledger.as_actor_id(requester_id)
	try:
		requester = Actor.objects.get(id=requester_id)
	except Actor.DoesNotExist:
		raise NotFound(f"actor not found: {requester_id}")

	if requester.balance < cost:
		raise InsufficientFunds(f"balance {requester.balance} < {cost}")

	if Request.objects.filter(requester=requester, kind=kind, state=RequestState.PENDING).exists():
		raise DuplicatePendingRequest(f"a {kind} request is already pending")

	try:
		# savepoint so a lost race leaves the outer transaction usable
		with transaction.atomic():
			request = Request.objects.create(
				requester=requester,
				kind=kind,
				scope=scope,
				cost=cost,
				effect=effect or {},
			)
	except IntegrityError:
		# Another submit for the same (requester, kind) won the race
		raise DuplicatePendingRequest(f"a {kind} request is already pending")

	logger.info("request %s submitted: %s/%s by %s cost=%d", request.id, kind, scope, requester.id, cost)
	return request


@transaction.atomic
def review(request_id, reviewer_id, decision: str, *, now=None) -> Request:
	"""
	Approve or reject a pending request. Only the first review wins; later
	or concurrent ones see AlreadyResolved and change nothing.
	"""
	if decision not in DECISIONS:
		raise InvalidStateTransition(f"unknown decision: {decision!r}")
	new_state = DECISIONS[decision]

	try:
		request = Request.objects.select_for_update().get(id=uuid.UUID(str(request_id)))
	except (Request.DoesNotExist, ValueError):
		raise NotFound(f"request not found: {request_id}")

	assert_transition(request.state, new_state)

	reviewer_id = ledger.as_actor_id(reviewer_id)
	if not Actor.objects.filter(id=reviewer_id).exists():
		raise NotFound(f"actor not found: {reviewer_id}")
	if reviewer_id == request.requester_id:
		raise InvalidRequest("cannot review your own request")

	if new_state == RequestState.APPROVED:
		request.result = apply_effect(request, reviewer_id)

	request.state = new_state
	request.reviewer_id = reviewer_id
	request.reviewed_at = now or timezone.now()
	request.save(update_fields=["state", "reviewer", "result", "reviewed_at"])
	logger.info("request %s %s by %s", request.id, request.state, reviewer_id)
	return request


def apply_effect(request: Request, reviewer_id) -> dict:
	effect = request.effect or {}
	result = dict(request.result or {})

	if request.cost > 0:
		if effect.get("pay_reviewer"):
			ref_id = ledger.transfer(request.requester_id, reviewer_id, request.cost, memo=f"{request.kind}:{request.id}")
			result["paid_to"] = str(reviewer_id)
			result["ledger_ref"] = str(ref_id)
		else:
			ledger.debit(request.requester_id, request.cost, ref_type="request", ref_id=request.id, memo=request.kind)

	if effect.get("stats") or effect.get("set_stats"):
		stats, _ = PlayerStats.objects.select_for_update().get_or_create(actor_id=request.requester_id)
		stats.apply(deltas=effect.get("stats"), values=effect.get("set_stats"))
		stats.save()
		result["stats"] = stats.as_dict()

	if effect.get("issue_document"):
		result["document_code"] = document_code()

	return result


def document_code() -> str:
	"""
	BANCO-<epoch millis>-<9 random chars>
	"""
	suffix = "".join(secrets.choice(DOCUMENT_ALPHABET) for _ in range(9))
	return f"BANCO-{int(timezone.now().timestamp() * 1000)}-{suffix}"


def pending_for(scope: str):
	return (
		Request.objects.select_related("requester")
		.filter(scope=scope, state=RequestState.PENDING)
		.order_by("created_at")
	)


def history_for(actor_id, *, limit: int = 50):
	return (
		Request.objects.select_related("requester")
		.filter(requester_id=ledger.as_actor_id(actor_id))
		.order_by("-created_at")[:limit]
	)
