"""Status API routers.

Every public module here that defines a module-level ``router`` is mounted
by :func:`register_routes`; ``schemas`` has none and is skipped quietly.
"""

import importlib
import logging
import pkgutil

from fastapi import APIRouter, FastAPI

_log = logging.getLogger(__name__)


def register_routes(app: FastAPI) -> None:
    for info in pkgutil.iter_modules(__path__):  # type: ignore[name-defined]
        if info.name.startswith("_"):
            continue

        qualified = f"{__name__}.{info.name}"
        try:
            module = importlib.import_module(qualified)
        except Exception:
            _log.exception("Could not import route module %s", qualified)
            continue

        router = getattr(module, "router", None)
        if not isinstance(router, APIRouter):
            _log.debug("%s has no router", qualified)
            continue

        app.include_router(router)
        _log.info("Mounted %d route(s) from %s", len(router.routes), info.name)
