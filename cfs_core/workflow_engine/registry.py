"""Business flow registry: the ordered step catalog the engine interprets."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from threading import RLock
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, Tuple
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from cfs_core.core.config import AppSettings, get_settings
from cfs_core.schemas.flow import FlowDefinition
from cfs_core.services.errors import FlowRegistryError, NotFoundError, ValidationError
from cfs_core.workflow_engine.defaults import DEFAULT_FLOW_DEFINITIONS

logger = logging.getLogger("cfs_core.workflow_engine.registry")


@dataclass(frozen=True)
class BusinessFlowStep:
    code: str
    from_status: Optional[str]
    to_status: Optional[str]


@dataclass(frozen=True)
class FlowConfig:
    """A named, ordered sequence of steps."""

    name: str
    direction: str
    steps: Tuple[BusinessFlowStep, ...]

    @property
    def initial_status(self) -> Optional[str]:
        return self.steps[0].from_status

    @property
    def terminal_status(self) -> Optional[str]:
        return self.steps[-1].to_status

    def step(self, code: str) -> Optional[BusinessFlowStep]:
        return next((step for step in self.steps if step.code == code), None)


def build_flow_config(raw: Mapping[str, Any], *, name: Optional[str] = None) -> FlowConfig:
    """Parse and validate a flow definition.

    The steps must form one contiguous forward chain: every step starts where
    the previous one ended, no status is left twice and the terminal status
    never re-enters the chain.
    """

    data = dict(raw)
    if name is not None:
        data.setdefault("name", name)
    try:
        definition = FlowDefinition.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid flow definition: {exc.errors()}") from exc

    steps = tuple(
        BusinessFlowStep(code=step.code, from_status=step.from_status, to_status=step.to_status)
        for step in definition.steps
    )
    if not steps:
        raise ValidationError(f"Flow '{definition.name}' declares no steps")

    codes = [step.code for step in steps]
    if len(set(codes)) != len(codes):
        raise ValidationError(f"Flow '{definition.name}' repeats a step code")

    for previous, current in zip(steps, steps[1:]):
        if current.from_status != previous.to_status:
            raise ValidationError(
                f"Flow '{definition.name}' step '{current.code}' starts at {current.from_status!r} "
                f"but '{previous.code}' ends at {previous.to_status!r}"
            )

    visited = [step.from_status for step in steps]
    if len(set(visited)) != len(visited) or steps[-1].to_status in visited:
        raise ValidationError(f"Flow '{definition.name}' revisits a position status")

    return FlowConfig(name=definition.name, direction=definition.direction, steps=steps)


class FlowRegistry(Protocol):
    """Read-only access to business flow configuration."""

    def get_flow_config(self, flow_name: str) -> FlowConfig:
        ...

    def all(self) -> Dict[str, FlowConfig]:
        ...


class InMemoryFlowRegistry(FlowRegistry):
    """Process-local catalog populated at startup."""

    def __init__(self) -> None:
        self._flows: Dict[str, FlowConfig] = {}
        self._lock = RLock()

    def register(self, flow: FlowConfig) -> None:
        with self._lock:
            self._flows[flow.name] = flow

    def get_flow_config(self, flow_name: str) -> FlowConfig:
        with self._lock:
            flow = self._flows.get(flow_name)
        if flow is None:
            raise NotFoundError(f"Business flow '{flow_name}' not found")
        return flow

    def all(self) -> Dict[str, FlowConfig]:
        with self._lock:
            return dict(self._flows)

    def ensure_default_flows(self, definitions: Iterable[Mapping[str, Any]]) -> None:
        """Idempotently register flow definitions; later entries win."""

        for raw in definitions:
            flow = build_flow_config(raw)
            self.register(flow)
            logger.debug("flow_registered", extra={"flow": flow.name, "steps": len(flow.steps)})


class HttpFlowRegistry(FlowRegistry):
    """Reads flows from the upstream registry on every call.

    Flow configuration is never cached here, so a flow edited upstream is
    picked up by the next step execution.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def get_flow_config(self, flow_name: str) -> FlowConfig:
        path = f"/v1/package-transactions/flows/{quote(flow_name, safe='')}"
        try:
            response = self._client.get(path)
        except httpx.RequestError as exc:
            logger.error("flow_registry_request_error", extra={"flow": flow_name, "error": str(exc)})
            raise FlowRegistryError(f"Failed to reach flow registry: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"Business flow '{flow_name}' not found")
        try:
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPStatusError, ValueError) as exc:
            logger.error(
                "flow_registry_bad_response",
                extra={"flow": flow_name, "status_code": response.status_code},
            )
            raise FlowRegistryError(f"Flow registry returned an invalid response for '{flow_name}'") from exc

        payload = body.get("data", body) if isinstance(body, dict) else None
        if not isinstance(payload, dict):
            raise FlowRegistryError(f"Flow registry returned an invalid response for '{flow_name}'")
        try:
            return build_flow_config(payload, name=flow_name)
        except ValidationError as exc:
            raise FlowRegistryError(str(exc)) from exc

    def all(self) -> Dict[str, FlowConfig]:
        raise FlowRegistryError("Listing flows is not supported by the remote registry")

    def close(self) -> None:
        self._client.close()


def load_flow_definitions(path: str) -> list[dict[str, Any]]:
    """Read flow definitions from a JSON file holding a list or a ``{name: flow}`` map."""

    content = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(content, dict):
        return [{**flow, "name": flow_name} for flow_name, flow in content.items()]
    if isinstance(content, list):
        return content
    raise ValidationError(f"Flow definitions file {path} must contain a list or an object")


_shared_registry: Optional[FlowRegistry] = None


def build_flow_registry(settings: AppSettings) -> FlowRegistry:
    if settings.flow_registry_url:
        return HttpFlowRegistry(base_url=settings.flow_registry_url, timeout=settings.flow_registry_timeout)

    registry = InMemoryFlowRegistry()
    registry.ensure_default_flows(DEFAULT_FLOW_DEFINITIONS)
    if settings.flow_definitions_file:
        registry.ensure_default_flows(load_flow_definitions(settings.flow_definitions_file))
    return registry


def get_flow_registry() -> FlowRegistry:
    """Return the process-wide flow registry."""

    global _shared_registry
    if _shared_registry is None:
        _shared_registry = build_flow_registry(get_settings())
    return _shared_registry


def set_flow_registry(registry: Optional[FlowRegistry]) -> None:
    """Override the cached registry (primarily for tests)."""

    global _shared_registry
    _shared_registry = registry
