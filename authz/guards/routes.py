"""
Route-to-permission lookup.

Maps a navigable path to the (entity, action) pair a caller needs. Paths are
matched exactly first, then against ``{param}`` templates in file order.
Loaded from the ``routes`` section of the permission YAML.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..permissions.matrix import MatrixConfigError
from ..permissions.types import ActionType, EntityType

logger = logging.getLogger(__name__)


class RouteModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    path: str
    entity: EntityType
    action: ActionType
    label: str | None = None


class RoutesFileModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    routes: list[RouteModel] = Field(default_factory=list)


@dataclass(frozen=True)
class RoutePermission:
    path_template: str
    entity: EntityType
    action: ActionType
    label: str | None = None


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # Convert "/escrows/{escrow_id}" -> r"^/escrows/[^/]+$"
    parts = re.split(r"\{[^/]+\}", path_template)
    regex = "[^/]+".join(re.escape(part) for part in parts)
    return re.compile(rf"^{regex}$")


class RoutePermissionTable:
    """
    Immutable path lookup.

    Usage:
        routes = load_route_permissions(Path("permission_matrix.yaml"))
        required = routes.lookup("/escrows/esc-42")
    """

    def __init__(self, routes: Iterable[RoutePermission]) -> None:
        self._routes = tuple(routes)

        # Prefer exact matches over templates.
        self._exact: dict[str, RoutePermission] = {}
        for route in self._routes:
            if route.path_template in self._exact:
                raise MatrixConfigError(f"route {route.path_template!r} is defined more than once")
            self._exact[route.path_template] = route
        self._templates = [
            (_path_template_to_regex(route.path_template), route)
            for route in self._routes
            if "{" in route.path_template
        ]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RoutePermissionTable:
        try:
            model = RoutesFileModel.model_validate(raw)
        except ValidationError as e:
            raise MatrixConfigError(f"Invalid route permissions: {e}") from e
        return cls(
            RoutePermission(path_template=r.path, entity=r.entity, action=r.action, label=r.label)
            for r in model.routes
        )

    @property
    def routes(self) -> tuple[RoutePermission, ...]:
        return self._routes

    def lookup(self, path: str) -> RoutePermission | None:
        exact = self._exact.get(path)
        if exact is not None:
            return exact
        for regex, route in self._templates:
            if regex.match(path):
                return route
        return None


def load_route_permissions(path: Path) -> RoutePermissionTable:
    raw_text = path.read_text(encoding="utf-8")
    try:
        raw = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as e:
        raise MatrixConfigError(f"Route config is not valid YAML: {path}") from e
    if not isinstance(raw, dict):
        raise MatrixConfigError(f"Route config must be a mapping: {path}")

    table = RoutePermissionTable.from_mapping(raw)
    logger.info("Loaded route permissions path=%s routes=%d", path, len(table.routes))
    return table
