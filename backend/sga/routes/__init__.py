"""HTTP routers, one module per resource."""

from typing import Any, Callable

from fastapi import Request

from ..auth import get_container


def provide(name: str) -> Callable[[Request], Any]:
    """Dependency resolving `name` from the application's container."""
    def resolve(request: Request):
        return get_container(request).resolve(name)
    resolve.__name__ = f"provide_{name}"
    return resolve
