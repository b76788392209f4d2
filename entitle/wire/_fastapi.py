"""
FastAPI compiler for wire endpoints.

Every route answers JSON: the codec's response on Ok, ``{"error": message}``
with the error's status on Error. Body validation failures become 400 and
anything a handler raises becomes 500, both in the same shape.
"""

import inspect
import logging
from collections.abc import Sequence
from typing import Annotated, Any, TypeGuard

import fastapi
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from kungfu import Ok, Error, Result

from entitle._types import BearerCredential
from entitle.ops import Op, Runner
from entitle.wire._endpoint import Application, Endpoint
from entitle.wire._types import Exposure, HTTPRouteTrigger, Path, RequestResponseCodec

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ("authorization", "x-client-info", "apikey", "content-type")

type Route = tuple[str, Path, Any, type[Any], str | None]  # (method, path, handler, response_model, summary)


def is_target(exposure: Exposure) -> TypeGuard[tuple[HTTPRouteTrigger, RequestResponseCodec]]:
    return isinstance(exposure[0], HTTPRouteTrigger) and isinstance(exposure[1], RequestResponseCodec)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _make_handler(trigger: HTTPRouteTrigger, codec: RequestResponseCodec, runner: Runner) -> Any:
    resp_cls = codec.response

    async def _route_handler(req: Any, authorization: str | None = None) -> Any:
        try:
            if trigger.authenticated:
                domain_op: Op[Any, Any] = req.to_domain(BearerCredential.from_header(authorization))
            else:
                domain_op = req.to_domain()
            result: Result[Any, Any] = await runner.run(domain_op)
        except Exception:
            logger.exception("Unhandled error on %s %s", trigger.method, trigger.path)
            return error_response(500, "Internal server error")

        match result:
            case Ok(value):
                return resp_cls.from_domain(value)
            case Error(e):
                return JSONResponse(e.to_json(), status_code=e.status)

    req_annotation: Any = codec.request
    if trigger.method == "GET":
        req_annotation = Annotated[codec.request, fastapi.Query()]

    params = [inspect.Parameter("req", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=req_annotation)]
    if trigger.authenticated:
        params.append(
            inspect.Parameter(
                "authorization",
                inspect.Parameter.KEYWORD_ONLY,
                default=None,
                annotation=Annotated[str | None, fastapi.Header()],
            )
        )
    _route_handler.__signature__ = inspect.Signature(params)  # type: ignore[attr-defined]
    return _route_handler


def compile_to_fastapi_route(endp: Endpoint) -> list[Route]:
    routes: list[Route] = []

    for exposure in endp.exposures:
        if not is_target(exposure):
            continue
        trigger, codec = exposure
        handler = _make_handler(trigger, codec, endp.runner)
        routes.append((trigger.method.upper(), trigger.path, handler, codec.response, trigger.summary))

    return routes


def add_endpoint_to_app(app: fastapi.FastAPI, endp: Endpoint) -> None:
    for method, path, handler, response_model, summary in compile_to_fastapi_route(endp):
        app.add_api_route(
            path,
            handler,
            methods=[method],
            response_model=response_model,
            summary=summary,
        )


async def _on_validation_error(request: fastapi.Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        return error_response(400, "Invalid request")
    problems: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())[1:]) or "body"
        problems.append(f"{loc}: {err.get('msg', 'invalid')}")
    return error_response(400, "Invalid request: " + "; ".join(problems))


def from_application(
    app: Application,
    *,
    cors_origins: Sequence[str] = ("*",),
    **fastapi_kwargs: Any,
) -> fastapi.FastAPI:
    f_app = fastapi.FastAPI(**fastapi_kwargs)
    f_app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=list(CORS_ALLOW_HEADERS),
    )
    f_app.add_exception_handler(RequestValidationError, _on_validation_error)

    for endp in app.endpoints:
        add_endpoint_to_app(f_app, endp)

    return f_app


__all__ = (
    "CORS_ALLOW_HEADERS",
    "error_response",
    "compile_to_fastapi_route",
    "add_endpoint_to_app",
    "from_application",
)
