"""
Ops — data-driven dispatch with dependency injection.

    from entitle import ops as O

    @dataclass(frozen=True, slots=True)
    class VerifyPayment(O.Returning[Activated, PipelineError]):
        payment_id: str
        ...

    async def verify_payment(req: VerifyPayment, directory: Directory) -> Result[...]:
        ...

    runner = O.ops().on(VerifyPayment, verify_payment).compile().inject(Directory, directory)
    result = await runner.run(VerifyPayment(...))
"""

from entitle.ops._runner import (
    Op,
    Returning,
    OpsBuilder,
    Runner,
    ops,
)

__all__ = (
    "Op",
    "Returning",
    "OpsBuilder",
    "Runner",
    "ops",
)
