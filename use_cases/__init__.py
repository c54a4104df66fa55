"""Application layer contracts for orchestrating high-level flows."""

from .auth_decision import INCONSISTENT_AUTH_STATE, UNKNOWN_LOGIN_TYPE, AuthDecisionEngine
from .session_models import (
    Aborted,
    Alert,
    AuthStatusPayload,
    Factor,
    FactorKind,
    LoginStage,
    NavigateTo,
    NextAction,
    Noop,
    OtherError,
    Proceed,
    RedirectExternal,
    RequestOutcome,
    Route,
    Success,
    Unauthorized,
)

__all__ = [
    "Aborted",
    "Alert",
    "AuthDecisionEngine",
    "AuthStatusPayload",
    "Factor",
    "FactorKind",
    "INCONSISTENT_AUTH_STATE",
    "LoginStage",
    "NavigateTo",
    "NextAction",
    "Noop",
    "OtherError",
    "Proceed",
    "RedirectExternal",
    "RequestOutcome",
    "Route",
    "Success",
    "UNKNOWN_LOGIN_TYPE",
    "Unauthorized",
]
