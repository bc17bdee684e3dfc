"""FastAPI application factory and route setup for camgate."""

import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse

from camgate import metrics
from camgate.auth import BasicAuthenticator
from camgate.config import CamgateConfig
from camgate.credentials import CredentialStore
from camgate.errors import AuthenticationFailure, GatewayError, InternalError, RouteNotMatched
from camgate.handlers.listing import ListingHandler
from camgate.handlers.objects import ObjectHandler
from camgate.routing import DateKey, DateListing, DateObject, Root, classify
from camgate.storage.backend import ObjectStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    config: CamgateConfig,
    credentials: CredentialStore,
    store: ObjectStore,
) -> FastAPI:
    """Create and configure the camgate FastAPI application.

    Everything the app needs is passed in; the store is expected to be
    initialised by the caller, which also closes it. The same app instance
    can be served by several listeners.

    Args:
        config: The loaded configuration.
        credentials: Usernames and password hashes for Basic auth.
        store: The object store to list and stream from.

    Returns:
        A configured FastAPI application ready to run.
    """
    app = FastAPI(
        title="camgate",
        version="0.1.0",
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.config = config
    app.state.store = store
    app.state.authenticator = BasicAuthenticator(credentials, realm=config.server.realm)

    _register_exception_handlers(app)
    _register_middleware(app, config)
    _setup_routes(app, store)

    return app


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> Response:
        """Render a GatewayError as its plain-text body and status."""
        return PlainTextResponse(content=exc.message, status_code=exc.http_status)

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> Response:
        """Catch unexpected exceptions raised outside the auth middleware."""
        logger.exception("Unhandled exception in request handler")
        return _internal_error_response()


def _internal_error_response() -> Response:
    err = InternalError()
    return PlainTextResponse(content=err.message, status_code=err.http_status)


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


def _request_extra(request: Request) -> dict:
    return {
        "remote": request.client.host if request.client else "-",
        "method": request.method,
        "path": request.url.path,
    }


def _register_middleware(app: FastAPI, config: CamgateConfig) -> None:
    """Register middleware on the FastAPI app.

    The last registered middleware is the outermost, so auth is registered
    first and request logging second: logging -> auth -> handler.
    """
    powered_by = config.server.powered_by

    @app.middleware("http")
    async def auth_middleware(request: Request, call_next) -> Response:
        """Basic authentication gate.

        Unauthenticated requests are answered here with 401 and never reach
        a route. FastAPI exception handlers do not see exceptions raised in
        middleware, so the failure is rendered directly.
        """
        authenticator: BasicAuthenticator = app.state.authenticator
        try:
            username = await authenticator.authenticate(request.headers.get("authorization"))
        except AuthenticationFailure as exc:
            metrics.record_auth_failure()
            logger.info("rejected: %s", exc.reason, extra=_request_extra(request))
            return PlainTextResponse(
                content=exc.message,
                status_code=exc.http_status,
                headers={"WWW-Authenticate": authenticator.challenge},
            )

        request.state.username = username
        try:
            response = await call_next(request)
        except Exception:
            # Authenticated 500s carry X-Powered-By too.
            logger.exception(
                "Unhandled exception in request handler", extra=_request_extra(request)
            )
            response = _internal_error_response()
        response.headers["X-Powered-By"] = powered_by
        return response

    @app.middleware("http")
    async def request_log_middleware(request: Request, call_next) -> Response:
        """Log every request on arrival and again on completion."""
        extra = _request_extra(request)
        logger.info("received", extra=extra)
        start = time.monotonic()

        response = await call_next(request)

        duration_ms = round((time.monotonic() - start) * 1000, 2)
        route = getattr(request.state, "route", None)
        if route is not None:
            metrics.record_request(route, response.status_code)
        logger.info(
            "completed",
            extra={
                **extra,
                "status": response.status_code,
                "duration_ms": duration_ms,
                "user": getattr(request.state, "username", None),
            },
        )
        return response


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


def _setup_routes(app: FastAPI, store: ObjectStore) -> None:
    """Register the single catch-all GET route.

    FastAPI's own path matching is bypassed: every path goes through
    ``classify`` so all of the gateway's routing lives in one place.

    Args:
        app: The FastAPI application to attach routes to.
        store: The object store handed to the handlers.
    """
    listing_handler = ListingHandler(store)
    object_handler = ObjectHandler(store)

    @app.get("/{path:path}")
    async def handle_get(path: str, request: Request) -> Response:
        """Dispatch by path shape.

        /                 -> redirect to today's listing
        /YYYY/MM/DD[/]    -> listing
        /YYYY/MM/DD/name  -> object stream
        otherwise         -> 404
        """
        route = classify(request.url.path)
        request.state.route = type(route).__name__

        if isinstance(route, Root):
            return RedirectResponse(url=DateKey.today().path, status_code=302)
        if isinstance(route, DateListing):
            return await listing_handler.list_date(route.date)
        if isinstance(route, DateObject):
            return await object_handler.stream_object(route.key)
        raise RouteNotMatched(request.url.path)
