from .api import ApiError, RealmClient, TransientError
from .refresh import DEFAULT_CADENCE, RefreshScheduler

__all__ = ["ApiError", "RealmClient", "TransientError", "RefreshScheduler", "DEFAULT_CADENCE"]
