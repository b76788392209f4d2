"""
Typed dispatch with dependency injection by annotation.

Core idea:
- Op[T, E] is the base class for operations (frozen dataclasses)
- A handler is ``async def handler(req: SomeOp, dep: SomeType, ...) -> Result[T, E]``
- The runner hands the request to the parameter annotated with the op type
  and fills every other parameter from the injected scope, keyed by type

Example:
    @dataclass(frozen=True, slots=True)
    class GetPlan(Op[PricingPlan, PipelineError]):
        region: Region

    async def get_plan(req: GetPlan, catalog: Catalog) -> Result[PricingPlan, PipelineError]:
        ...

    runner = ops().on(GetPlan, get_plan).compile().inject(Catalog, catalog)
    result = await runner.run(GetPlan(Region.IN))
"""

from __future__ import annotations

import inspect
from abc import ABC
from dataclasses import dataclass, field
from typing import Any, TypeVar, Callable, Awaitable, Generic, get_type_hints, cast

from kungfu import Result

T = TypeVar("T")
E = TypeVar("E")
T_co = TypeVar("T_co", covariant=True)
E_co = TypeVar("E_co", covariant=True)

HandlerFunc = Callable[..., Awaitable[Result[Any, Any]]]


class Op(ABC, Generic[T_co, E_co]):
    """Base class for operations. Subclasses are plain frozen dataclasses."""


@dataclass(frozen=True, slots=True)
class _OpReg:
    """Registration: Op type → handler + how to fill each parameter."""
    op_type: type[Op[Any, Any]]
    handler: HandlerFunc
    request_param: str
    deps: tuple[tuple[str, type[Any]], ...]


def _register(op_type: type[Op[Any, Any]], handler: HandlerFunc) -> _OpReg:
    """
    Split handler parameters into the request slot and injected dependencies.

    Exactly one parameter must be annotated with ``op_type``.
    """
    sig = inspect.signature(handler)
    hints = get_type_hints(handler)

    request_param: str | None = None
    deps: list[tuple[str, type[Any]]] = []

    for pname, p in sig.parameters.items():
        ptype = hints.get(pname, p.annotation)
        if ptype is op_type:
            if request_param is not None:
                raise TypeError(f"{handler.__name__}: more than one {op_type.__name__} parameter")
            request_param = pname
        elif ptype is inspect.Parameter.empty:
            raise TypeError(f"{handler.__name__}: parameter {pname!r} needs an annotation")
        else:
            deps.append((pname, ptype))

    if request_param is None:
        raise TypeError(f"{handler.__name__}: no parameter annotated with {op_type.__name__}")

    return _OpReg(op_type=op_type, handler=handler, request_param=request_param, deps=tuple(deps))


@dataclass(slots=True, frozen=True)
class OpsBuilder:
    """Builder for operation handlers."""
    _items: tuple[tuple[type[Op[Any, Any]], HandlerFunc], ...] = ()

    def on(
        self,
        op_type: type[Op[Any, Any]],
        handler: HandlerFunc,
    ) -> OpsBuilder:
        """Register handler for operation type."""
        # Last registration wins
        others = tuple(i for i in self._items if i[0] is not op_type)
        return OpsBuilder(_items=(*others, (op_type, handler)))

    def compile(self) -> Runner:
        """Inspect every handler once and build the runner."""
        registry = {op_type: _register(op_type, handler) for op_type, handler in self._items}
        return Runner(_registry=registry)


@dataclass(slots=True)
class Runner:
    """
    Executes operations against the injected scope.

    Missing dependencies are a wiring bug and raise LookupError; everything
    a handler can legitimately fail with comes back as ``Error``.
    """
    _registry: dict[type[Op[Any, Any]], _OpReg]
    _scope: dict[type[Any], object] = field(default_factory=dict[type[Any], object])

    def inject(self, typ: type[Any], impl: object) -> Runner:
        """Inject shared dependency."""
        self._scope[typ] = impl
        return self

    def resolve(self, typ: type[T]) -> T:
        try:
            return cast(T, self._scope[typ])
        except KeyError:
            raise LookupError(f"No dependency injected for {getattr(typ, '__name__', typ)}") from None

    def handles(self, op_type: type[Op[Any, Any]]) -> bool:
        return op_type in self._registry

    async def run(self, req: Op[T, E]) -> Result[T, E]:
        op_type = type(req)
        reg = self._registry.get(op_type)
        if reg is None:
            raise LookupError(f"Op not registered: {op_type.__name__}")

        kwargs: dict[str, Any] = {reg.request_param: req}
        for pname, ptype in reg.deps:
            kwargs[pname] = self.resolve(ptype)
        return cast(Result[T, E], await reg.handler(**kwargs))


def ops() -> OpsBuilder:
    """Create ops builder: ops().on(...).compile()"""
    return OpsBuilder()


# Aliases
Returning = Op

__all__ = ("Op", "Returning", "OpsBuilder", "Runner", "ops")
