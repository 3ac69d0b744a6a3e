"""
Storefront Backend — Route Composition Table
==============================================

What:  An ordered table of (prefix, guard, handler group) bindings that is
       mounted onto the FastAPI app in registration order.
Why:   Which requests bypass authentication, which fall under it, and in
       which order matching is attempted are decided in ONE place instead of
       being scattered across `include_router` calls.
How:   Starlette matches routes in the order they were added and the first
       full (path + method) match wins, so mounting the bindings in table
       order gives exactly-one-match semantics for free. Guards are attached
       as FastAPI router dependencies, so a rejected request never reaches
       the endpoint body.

Binding kinds:
    group      A handler group (APIRouter) mounted under a prefix, optionally
               with its own guard.
    carve_out  Specific (method, sub-path) endpoints looked up inside a handler
               group and mounted on their own. Used to expose login/register
               ahead of the blanket guard. The lookup runs once, while the
               table is mounted; a missing endpoint is replaced by a stand-in
               that answers 404 `endpoint_not_configured`.
    guard      A blanket guard over a prefix. Every later binding under that
               prefix inherits it, and a trailing catch-all makes unknown
               paths under the prefix pass the guard before the 404.
    static     A static file tree; never guarded.

Typical table (see main.build_route_table):

    ┌────────────────────┬──────────────────────────┬─────────┐
    │ prefix             │ handler group            │ guard   │
    ├────────────────────┼──────────────────────────┼─────────┤
    │ /api/status        │ status                   │ -       │
    │ /api/products      │ products (reads)         │ -       │
    │ /api/categories    │ categories (reads)       │ -       │
    │ /api/users         │ auth: POST /login, /reg. │ -       │  carve-out
    │ /api               │ (blanket guard)          │ auth    │
    │ /api/users ...     │ users, address, ...      │ auth    │  inherited
    │ /uploads           │ static files             │ -       │
    └────────────────────┴──────────────────────────┴─────────┘
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from fastapi import APIRouter, Depends, FastAPI
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.exceptions import EndpointNotConfiguredError

logger = logging.getLogger(__name__)

# A guard is any FastAPI dependency callable that raises to reject
Guard = Callable[..., Any]

CATCH_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class BindingKind(str, enum.Enum):
    GROUP = "group"
    CARVE_OUT = "carve_out"
    GUARD = "guard"
    STATIC = "static"


@dataclass(frozen=True)
class RouteBinding:
    """One row of the composition table."""

    kind: BindingKind
    prefix: str
    router: Optional[APIRouter] = None
    guard: Optional[Guard] = None
    endpoints: Tuple[Tuple[str, str], ...] = ()
    directory: Optional[str] = None
    name: Optional[str] = None


def _normalize_prefix(prefix: str) -> str:
    prefix = prefix.rstrip("/")
    if prefix and not prefix.startswith("/"):
        prefix = "/" + prefix
    return prefix


def is_under(prefix: str, parent: str) -> bool:
    """True when `prefix` equals `parent` or lies below it on a path boundary."""
    if not parent:
        return True
    return prefix == parent or prefix.startswith(parent + "/")


def find_route(group: APIRouter, method: str, path: str) -> Optional[APIRoute]:
    """Locate the route a handler group registered for an exact (method, sub-path)."""
    method = method.upper()
    for route in group.routes:
        if isinstance(route, APIRoute) and route.path == path and method in route.methods:
            return route
    return None


def _endpoint_label(path: str) -> str:
    # "/login" → "Login"
    last = path.strip("/").split("/")[-1] if path.strip("/") else "root"
    return last.replace("-", " ").replace("_", " ").capitalize()


def _not_configured_endpoint(label: str) -> Callable[[], Any]:
    async def endpoint_not_configured() -> None:
        raise EndpointNotConfiguredError(endpoint=label)

    return endpoint_not_configured


async def _unmatched_under_guard(path: str) -> None:
    # Only reached after the guard passed; same answer as an unknown route
    raise StarletteHTTPException(status_code=404)


class RouteTable:
    """
    Ordered composition of handler groups, carve-outs, guards and static mounts.

    Builder methods return the table so a composition reads top to bottom:

        table = (
            RouteTable()
            .include("/api/status", status.router)
            .carve_out("/api/users", auth.router, ("POST", "/login"))
            .guard("/api", authenticate)
            .include("/api/orders", orders.router)
        )
        table.mount(app)
    """

    def __init__(self) -> None:
        self._bindings: List[RouteBinding] = []

    @property
    def bindings(self) -> Tuple[RouteBinding, ...]:
        return tuple(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    # ── Builders ──────────────────────────────────────────────────────────

    def include(
        self,
        prefix: str,
        router: APIRouter,
        guard: Optional[Guard] = None,
    ) -> "RouteTable":
        self._bindings.append(
            RouteBinding(
                kind=BindingKind.GROUP,
                prefix=_normalize_prefix(prefix),
                router=router,
                guard=guard,
            )
        )
        return self

    def carve_out(
        self,
        prefix: str,
        group: APIRouter,
        *endpoints: Tuple[str, str],
    ) -> "RouteTable":
        if not endpoints:
            raise ValueError("carve_out() needs at least one (method, path) pair")
        self._bindings.append(
            RouteBinding(
                kind=BindingKind.CARVE_OUT,
                prefix=_normalize_prefix(prefix),
                router=group,
                endpoints=tuple((method.upper(), path) for method, path in endpoints),
            )
        )
        return self

    def guard(self, prefix: str, guard: Guard) -> "RouteTable":
        self._bindings.append(
            RouteBinding(kind=BindingKind.GUARD, prefix=_normalize_prefix(prefix), guard=guard)
        )
        return self

    def static(self, prefix: str, directory: str, name: str = "static") -> "RouteTable":
        self._bindings.append(
            RouteBinding(
                kind=BindingKind.STATIC,
                prefix=_normalize_prefix(prefix),
                directory=directory,
                name=name,
            )
        )
        return self

    # ── Mounting ──────────────────────────────────────────────────────────

    def guards_for(self, index: int) -> List[Guard]:
        """
        Guards that apply to the binding at `index`.

        Blanket guards registered earlier whose prefix covers the binding come
        first, then the binding's own guard. The same callable is listed once.
        """
        binding = self._bindings[index]
        guards: List[Guard] = []
        for earlier in self._bindings[:index]:
            if earlier.kind is BindingKind.GUARD and is_under(binding.prefix, earlier.prefix):
                guards.append(earlier.guard)
        if binding.guard is not None:
            guards.append(binding.guard)

        unique: List[Guard] = []
        for guard in guards:
            if guard not in unique:
                unique.append(guard)
        return unique

    def mount(self, app: FastAPI) -> None:
        """Register every binding on `app`, in table order."""
        blanket: List[RouteBinding] = []

        for index, binding in enumerate(self._bindings):
            if binding.kind is BindingKind.GUARD:
                blanket.append(binding)
                continue

            if binding.kind is BindingKind.STATIC:
                # check_dir=False: the startup bootstrap creates the directory
                app.mount(
                    binding.prefix,
                    StaticFiles(directory=binding.directory, check_dir=False),
                    name=binding.name,
                )
                continue

            dependencies = [Depends(guard) for guard in self.guards_for(index)]

            if binding.kind is BindingKind.GROUP:
                app.include_router(binding.router, prefix=binding.prefix, dependencies=dependencies)
                logger.debug("Mounted %s (guards=%d)", binding.prefix or "/", len(dependencies))
            else:
                self._mount_carve_out(app, binding, dependencies)

        for binding in blanket:
            app.add_api_route(
                f"{binding.prefix}/{{path:path}}",
                _unmatched_under_guard,
                methods=CATCH_ALL_METHODS,
                dependencies=[Depends(binding.guard)],
                include_in_schema=False,
            )

    def _mount_carve_out(
        self,
        app: FastAPI,
        binding: RouteBinding,
        dependencies: Sequence[Any],
    ) -> None:
        for method, path in binding.endpoints:
            route = find_route(binding.router, method, path)
            if route is None:
                label = _endpoint_label(path)
                logger.error(
                    "Carve-out %s %s%s not found in its handler group; answering 404",
                    method,
                    binding.prefix,
                    path,
                )
                app.add_api_route(
                    binding.prefix + path,
                    _not_configured_endpoint(label),
                    methods=[method],
                    dependencies=list(dependencies),
                    include_in_schema=False,
                )
                continue

            # A one-route router: only the carved endpoint escapes the guard
            single = APIRouter()
            single.routes.append(route)
            app.include_router(single, prefix=binding.prefix, dependencies=list(dependencies))
