"""Actor context propagation.

The current actor context lives in a context variable so that any unit of
work committed while handling a request picks it up. The FastAPI middleware
fills it from the request's method and user header.
"""

from contextvars import ContextVar, Token
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .models import ActorContext

# Context variable to store actor context for current request
actor_context_ctx: ContextVar[Optional[ActorContext]] = ContextVar(
    "actor_context", default=None
)


def get_actor_context() -> Optional[ActorContext]:
    """Get current actor context.

    Returns:
        Current actor context or None if not set.
    """
    return actor_context_ctx.get()


def set_actor_context(context: Optional[ActorContext]) -> Token:
    """Set actor context for current request.

    Args:
        context: Actor context to set, or None to clear it.

    Returns:
        Token that restores the previous value.
    """
    return actor_context_ctx.set(context)


def reset_actor_context(token: Token) -> None:
    """Restore the actor context that was active before ``set_actor_context``."""
    actor_context_ctx.reset(token)


class ActorContextMiddleware(BaseHTTPMiddleware):
    """Middleware to inject the actor context into requests.

    Reads the acting user from the configured header and the HTTP method from
    the request. Echoes the actor as X-Audit-Actor on the response when one
    was supplied.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-User-Id") -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request with actor context set.

        Args:
            request: Incoming request.
            call_next: Next middleware/handler in chain.

        Returns:
            Response, with X-Audit-Actor header when an actor was supplied.
        """
        actor_id = request.headers.get(self.header_name) or None
        context = ActorContext(actor_id=actor_id, method=request.method)

        token = set_actor_context(context)
        try:
            response = await call_next(request)
        finally:
            reset_actor_context(token)

        if actor_id:
            response.headers["X-Audit-Actor"] = actor_id

        return response
