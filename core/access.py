"""Establishment panel unlock: shared secret in, signed short-lived grant out.

Secrets live in settings.ESTABLISHMENT_SECRETS (environment), are compared
on the server in constant time, and a match yields a signed token carrying
{actor, scope, role}. Panels present the token on every privileged call;
nothing is stored, so an expired token means typing the secret again.
"""

import logging
from dataclasses import dataclass

from django.conf import settings
from django.core import signing
from django.utils.crypto import constant_time_compare

from .constants import ROLE_EMPLOYEE, ROLE_MANAGER, ROLE_NONE, ROLE_RANK
from .exceptions import InvalidSecret, NotFound

logger = logging.getLogger(__name__)

GRANT_SALT = "roleplay_city.panel-grant"


@dataclass(frozen=True)
class PanelGrant:
	actor_id: str
	scope: str
	role: str
	token: str = ""

	def as_dict(self):
		return {"actor_id": self.actor_id, "scope": self.scope, "role": self.role, "token": self.token}


def _secrets_for(scope_id: str) -> dict:
	secrets = getattr(settings, "ESTABLISHMENT_SECRETS", {}).get(scope_id)
	if not secrets:
		raise NotFound(f"unknown establishment: {scope_id}")
	return secrets


def elevate(actor_id, secret: str, scope_id: str) -> PanelGrant:
	"""
	Manager secret is checked before employee secret.
	"""
	secrets = _secrets_for(scope_id)
	for role in (ROLE_MANAGER, ROLE_EMPLOYEE):
		expected = secrets.get(role)
		if expected and constant_time_compare(str(secret or ""), expected):
			token = signing.dumps({"actor": str(actor_id), "scope": scope_id, "role": role}, salt=GRANT_SALT)
			logger.info("panel unlocked: actor=%s scope=%s role=%s", actor_id, scope_id, role)
			return PanelGrant(actor_id=str(actor_id), scope=scope_id, role=role, token=token)

	logger.warning("panel unlock failed: actor=%s scope=%s", actor_id, scope_id)
	raise InvalidSecret("incorrect password")


def verify_grant(token: str, scope_id: str, *, actor_id=None, minimum_role: str = ROLE_EMPLOYEE) -> PanelGrant:
	"""
	Decode a grant and check it covers `scope_id`, belongs to `actor_id` and
	ranks at least `minimum_role`.
	"""
	if not token:
		raise InvalidSecret("panel token required")
	max_age = getattr(settings, "PANEL_GRANT_MAX_AGE", 8 * 60 * 60)
	try:
		payload = signing.loads(token, salt=GRANT_SALT, max_age=max_age)
	except signing.SignatureExpired:
		raise InvalidSecret("panel token expired")
	except signing.BadSignature:
		raise InvalidSecret("panel token invalid")

	if payload.get("scope") != scope_id:
		raise InvalidSecret(f"panel token does not cover {scope_id}")
	if actor_id is not None and payload.get("actor") != str(actor_id):
		raise InvalidSecret("panel token belongs to another actor")
	role = payload.get("role", ROLE_NONE)
	if ROLE_RANK.get(role, 0) < ROLE_RANK[minimum_role]:
		raise InvalidSecret(f"{minimum_role} role required")
	return PanelGrant(actor_id=payload.get("actor", ""), scope=scope_id, role=role, token=token)
