from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Protocol, TypeVar

from entitle._types import BearerCredential
from entitle.ops import Op


T_co = TypeVar("T_co", covariant=True)
E_co = TypeVar("E_co", covariant=True)
DomainT_co = TypeVar("DomainT_co", covariant=True)
DomainT_contra = TypeVar("DomainT_contra", contravariant=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Codec
# ═══════════════════════════════════════════════════════════════════════════════


class ToDomain(Protocol[DomainT_co]):
    def to_domain(self) -> DomainT_co: ...


class ToDomainAuthenticated(Protocol[DomainT_co]):
    def to_domain(self, credential: BearerCredential | None) -> DomainT_co: ...


class FromDomain(Protocol[DomainT_contra]):
    @classmethod
    def from_domain(cls, dom: DomainT_contra) -> "FromDomain[DomainT_contra]": ...


@dataclass(frozen=True, slots=True)
class RequestResponseCodec:
    """
    Wire model ↔ op. ``response.from_domain`` only sees the Ok value;
    errors are rendered by the compiler.
    """

    request: type[Any]
    response: type[FromDomain[Any]]

    if TYPE_CHECKING:

        def __init__(
            self,
            request: type[ToDomain[Op[T_co, E_co]]] | type[ToDomainAuthenticated[Op[T_co, E_co]]],
            response: type[FromDomain[T_co]],
        ) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Trigger
# ═══════════════════════════════════════════════════════════════════════════════


type Method = Literal["GET", "POST", "PUT", "DELETE", "PATCH"]
type Path = str


@dataclass(frozen=True, slots=True)
class HTTPRouteTrigger:
    """
    HTTP route. With ``authenticated`` set the ``Authorization`` header is
    parsed into a BearerCredential and handed to ``to_domain``.
    """

    method: Method
    path: Path
    authenticated: bool = False
    summary: str | None = field(default=None, compare=False)


# compiler can support any possible pairs
type Trigger = HTTPRouteTrigger | Any
type Codec = RequestResponseCodec | Any
type Exposure = tuple[Trigger, Codec]


__all__ = (
    "ToDomain",
    "ToDomainAuthenticated",
    "FromDomain",
    "RequestResponseCodec",
    "Method",
    "Path",
    "HTTPRouteTrigger",
    "Trigger",
    "Codec",
    "Exposure",
)
