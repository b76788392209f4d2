from __future__ import annotations

from dataclasses import dataclass

import pytest
from kungfu import Result, Ok, Error

from entitle import ops as O

from conftest import err, ok, run


@dataclass(frozen=True, slots=True)
class Greeting:
    prefix: str


@dataclass(frozen=True, slots=True)
class Greet(O.Returning[str, str]):
    name: str


@dataclass(frozen=True, slots=True)
class Shout(O.Returning[str, str]):
    text: str


async def greet(req: Greet, greeting: Greeting) -> Result[str, str]:
    if not req.name:
        return Error("nobody to greet")
    return Ok(f"{greeting.prefix}, {req.name}")


async def shout(req: Shout) -> Result[str, str]:
    return Ok(req.text.upper())


def test_dispatch_with_injected_dependency() -> None:
    runner = O.ops().on(Greet, greet).on(Shout, shout).compile().inject(Greeting, Greeting("Hello"))

    assert ok(run(runner.run(Greet("Ann")))) == "Hello, Ann"
    assert err(run(runner.run(Greet("")))) == "nobody to greet"
    assert ok(run(runner.run(Shout("hey")))) == "HEY"
    assert runner.handles(Greet) and runner.handles(Shout)


def test_last_registration_wins() -> None:
    async def whisper(req: Shout) -> Result[str, str]:
        return Ok(req.text.lower())

    runner = O.ops().on(Shout, shout).on(Shout, whisper).compile()
    assert ok(run(runner.run(Shout("HEY")))) == "hey"


def test_missing_dependency_raises() -> None:
    runner = O.ops().on(Greet, greet).compile()
    with pytest.raises(LookupError, match="Greeting"):
        run(runner.run(Greet("Ann")))


def test_unregistered_op_raises() -> None:
    runner = O.ops().on(Shout, shout).compile()
    assert not runner.handles(Greet)
    with pytest.raises(LookupError, match="Greet"):
        run(runner.run(Greet("Ann")))


def test_handler_without_request_parameter_is_rejected() -> None:
    async def wrong(req: Shout) -> Result[str, str]:
        return Ok("")

    with pytest.raises(TypeError, match="no parameter annotated with Greet"):
        O.ops().on(Greet, wrong).compile()


def test_unannotated_dependency_is_rejected() -> None:
    async def sloppy(req: Greet, greeting) -> Result[str, str]:  # type: ignore[no-untyped-def]
        return Ok("")

    with pytest.raises(TypeError, match="needs an annotation"):
        O.ops().on(Greet, sloppy).compile()
