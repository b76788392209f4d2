"""
Wire — expose ops over HTTP.

    from entitle import checkout as C
    from entitle.wire import endpoint, Application, HTTPRouteTrigger, RequestResponseCodec, from_application

    endp = endpoint(runner).expose(
        HTTPRouteTrigger("POST", "/create-order", authenticated=True),
        RequestResponseCodec(CreateOrderRequest, OrderResponse),
    )
    app = from_application(Application().mount(endp))
"""

from entitle.wire._types import (
    ToDomain,
    ToDomainAuthenticated,
    FromDomain,
    RequestResponseCodec,
    HTTPRouteTrigger,
    Method,
    Path,
    Trigger,
    Codec,
    Exposure,
)
from entitle.wire._endpoint import (
    Endpoint,
    endpoint,
    Application,
)
from entitle.wire._fastapi import (
    CORS_ALLOW_HEADERS,
    error_response,
    compile_to_fastapi_route,
    add_endpoint_to_app,
    from_application,
)

__all__ = (
    # Core API
    "Endpoint",
    "endpoint",
    "Application",
    "Trigger",
    "Codec",
    "Exposure",
    # Codec & trigger
    "ToDomain",
    "ToDomainAuthenticated",
    "FromDomain",
    "RequestResponseCodec",
    "HTTPRouteTrigger",
    "Method",
    "Path",
    # FastAPI
    "CORS_ALLOW_HEADERS",
    "error_response",
    "compile_to_fastapi_route",
    "add_endpoint_to_app",
    "from_application",
)
