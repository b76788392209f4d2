from __future__ import annotations

from dataclasses import dataclass, field
from typing import Self

from entitle.ops import Runner
from entitle.wire._types import Codec, Exposure, Trigger


@dataclass(slots=True)
class Endpoint:
    runner: Runner
    exposures: list[Exposure] = field(default_factory=list[Exposure])

    @classmethod
    def from_runner(cls, runner: Runner) -> Endpoint:
        return cls(runner=runner)

    def expose(self, trigger: Trigger, codec: Codec) -> Endpoint:
        return Endpoint(
            runner=self.runner, exposures=[*self.exposures, (trigger, codec)]
        )


def endpoint(runner: Runner) -> Endpoint:
    return Endpoint.from_runner(runner)


class Application:
    def __init__(self) -> None:
        self.endpoints: list[Endpoint] = []

    def mount(self, *endps: Endpoint) -> Self:
        self.endpoints.extend(endps)
        return self


__all__ = (
    "Endpoint",
    "endpoint",
    "Application",
)
