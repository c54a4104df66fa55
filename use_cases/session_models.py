"""Session DTOs shared across application layers."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Mapping, Optional, Union

Route = Literal["splash", "user_login", "backend_login", "db_login", "vault", "callback_user_auth"]
LoginStage = Literal["user_login", "backend_login", "db_login"]
FactorType = Literal["redirect", "mask", "none", "unknown"]

LOGIN_STAGES = ("user_login", "backend_login", "db_login")


class Factor(Enum):
    """Authentication factors in the order they must be satisfied."""

    USER = "user"
    BACKEND = "backend"
    DB = "db"
    SATISFIED = "satisfied"


@dataclass(frozen=True)
class FactorKind:
    """How a login stage is to be completed: external redirect, form mask or nothing."""

    type: FactorType
    url: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Any) -> "FactorKind":
        if not isinstance(raw, Mapping):
            return cls(type="unknown")
        kind = raw.get("type")
        if kind == "redirect" and raw.get("url"):
            return cls(type="redirect", url=raw.get("url"))
        if kind in ("mask", "none"):
            return cls(type=kind)
        return cls(type="unknown")


def template_kind(settings: Mapping[str, Any]) -> FactorKind:
    """Backend login template from cached settings. Only redirect or mask are meaningful."""
    raw = settings.get("template")
    if isinstance(raw, Mapping) and raw.get("type") == "redirect" and raw.get("url"):
        return FactorKind(type="redirect", url=raw["url"])
    return FactorKind(type="mask")


@dataclass(frozen=True)
class AuthStatusPayload:
    """Which factors the server still considers unmet, as attached to a 401."""

    user: Optional[FactorKind] = None
    backend: bool = False
    db: bool = False

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> "AuthStatusPayload":
        raw_user = data.get("user")
        return cls(
            user=FactorKind.from_raw(raw_user) if raw_user is not None else None,
            backend=bool(data.get("backend")),
            db=bool(data.get("db")),
        )

    def first_unmet(self) -> Factor:
        if self.user is not None:
            return Factor.USER
        if not self.backend:
            return Factor.BACKEND
        if not self.db:
            return Factor.DB
        return Factor.SATISFIED


# --- request outcomes ---

@dataclass(frozen=True)
class Success:
    body: Mapping[str, Any] = field(default_factory=dict)

    @property
    def data(self) -> Any:
        return self.body.get("data")


@dataclass(frozen=True)
class Unauthorized:
    body: Mapping[str, Any] = field(default_factory=dict)

    @property
    def data(self) -> Any:
        return self.body.get("data")

    @property
    def message(self) -> str:
        return self.body.get("message") or "unauthorized"


@dataclass(frozen=True)
class OtherError:
    status: int
    message: str


@dataclass(frozen=True)
class Aborted:
    pass


RequestOutcome = Union[Success, Unauthorized, OtherError, Aborted]


# --- next actions ---

@dataclass(frozen=True)
class Noop:
    pass


@dataclass(frozen=True)
class Proceed:
    data: Any = None


@dataclass(frozen=True)
class NavigateTo:
    route: Route
    state: Optional[Mapping[str, Any]] = None
    redirect: bool = False
    auto_submit: bool = False


@dataclass(frozen=True)
class RedirectExternal:
    url: str


@dataclass(frozen=True)
class Alert:
    message: str


NextAction = Union[Noop, Proceed, NavigateTo, RedirectExternal, Alert]
