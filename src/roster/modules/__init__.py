"""Feature modules with auto-discovery."""

from importlib import import_module
from pathlib import Path

import structlog
from fastapi import APIRouter


logger = structlog.get_logger()


def discover_modules() -> list[APIRouter]:
    """Auto-discover and return routers from all modules.

    Scans the modules directory for packages that ship a ``routes.py``
    defining a ``router``. A module whose routes fail to import is an
    error, not something to skip silently.

    Returns:
        List of FastAPI routers from discovered modules.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if not path.is_dir() or path.name.startswith("_") or not (path / "routes.py").exists():
            continue

        package = import_module(f"roster.modules.{path.name}")
        routes = import_module(f"roster.modules.{path.name}.routes")
        if hasattr(routes, "router"):
            routers.append(routes.router)
            info = getattr(package, "__module_info__", {})
            logger.debug("module_loaded", module=path.name, version=info.get("version"))

    return routers
