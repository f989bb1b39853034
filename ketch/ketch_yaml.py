"""The ketch.yaml document that tunes how an application deployment runs."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass
class KetchYamlRestartHooks:
    """Commands run once per unit around a unit restart."""

    before: list[str] = field(default_factory=list)
    after: list[str] = field(default_factory=list)


@dataclass
class KetchYamlHooks:
    """Commands run during different stages of the application deployment."""

    build: list[str] = field(default_factory=list)
    restart: KetchYamlRestartHooks = field(default_factory=KetchYamlRestartHooks)


@dataclass
class KetchYamlHealthcheck:
    """Readiness and liveness probes of the application deployment."""

    path: str = ""
    method: str = ""
    scheme: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    match: str = ""
    use_in_router: bool = False
    force_restart: bool = False
    allowed_failures: int = 0
    interval_seconds: int = 0
    timeout_seconds: int = 0


@dataclass
class KetchYamlProcessPortConfig:
    """A port exposed by a process on its Kubernetes service."""

    name: str = ""
    protocol: str = ""
    port: int = 0
    target_port: int = 0


@dataclass
class KetchYamlProcessConfig:
    """Kubernetes configuration of one process."""

    ports: list[KetchYamlProcessPortConfig] = field(default_factory=list)


@dataclass
class KetchYamlKubernetesConfig:
    """Kubernetes-specific configuration, keyed by process name."""

    processes: dict[str, KetchYamlProcessConfig] = field(default_factory=dict)


def _scalars(cls: type, data: dict[str, Any], skip: tuple[str, ...] = ()) -> dict[str, Any]:
    return {
        f.name: data[f.name]
        for f in fields(cls)
        if f.name in data and f.name not in skip and data[f.name] is not None
    }


def _non_empty(obj: Any, always: tuple[str, ...] = ()) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.name in always or value:
            result[f.name] = value
    return result


def _hooks_from_dict(data: dict[str, Any]) -> KetchYamlHooks:
    restart = data.get("restart") or {}
    return KetchYamlHooks(
        build=list(data.get("build") or []),
        restart=KetchYamlRestartHooks(
            before=list(restart.get("before") or []),
            after=list(restart.get("after") or []),
        ),
    )


def _hooks_to_dict(hooks: KetchYamlHooks) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if hooks.build:
        result["build"] = list(hooks.build)
    result["restart"] = {
        key: list(value)
        for key, value in (("before", hooks.restart.before), ("after", hooks.restart.after))
        if value
    }
    return result


def _healthcheck_from_dict(data: dict[str, Any]) -> KetchYamlHealthcheck:
    check = KetchYamlHealthcheck(**_scalars(KetchYamlHealthcheck, data, skip=("headers",)))
    check.headers = dict(data.get("headers") or {})
    return check


def _healthcheck_to_dict(check: KetchYamlHealthcheck) -> dict[str, Any]:
    result = _non_empty(check, always=("path",))
    if "headers" in result:
        result["headers"] = dict(result["headers"])
    return result


def _kubernetes_from_dict(data: dict[str, Any]) -> KetchYamlKubernetesConfig:
    processes = {
        name: KetchYamlProcessConfig(
            ports=[
                KetchYamlProcessPortConfig(**_scalars(KetchYamlProcessPortConfig, port))
                for port in (config or {}).get("ports") or []
            ]
        )
        for name, config in (data.get("processes") or {}).items()
    }
    return KetchYamlKubernetesConfig(processes=processes)


def _kubernetes_to_dict(config: KetchYamlKubernetesConfig) -> dict[str, Any]:
    if not config.processes:
        return {}
    processes = {}
    for name, process in config.processes.items():
        ports = [_non_empty(port) for port in process.ports]
        processes[name] = {"ports": ports} if ports else {}
    return {"processes": processes}


@dataclass
class KetchYamlData:
    """Hooks, health checks and Kubernetes settings of an application deployment."""

    hooks: KetchYamlHooks | None = None
    healthcheck: KetchYamlHealthcheck | None = None
    kubernetes: KetchYamlKubernetesConfig | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> KetchYamlData:
        data = data or {}
        hooks = data.get("hooks")
        healthcheck = data.get("healthcheck")
        kubernetes = data.get("kubernetes")
        return cls(
            hooks=_hooks_from_dict(hooks) if hooks is not None else None,
            healthcheck=_healthcheck_from_dict(healthcheck) if healthcheck is not None else None,
            kubernetes=_kubernetes_from_dict(kubernetes) if kubernetes is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.hooks is not None:
            result["hooks"] = _hooks_to_dict(self.hooks)
        if self.healthcheck is not None:
            result["healthcheck"] = _healthcheck_to_dict(self.healthcheck)
        if self.kubernetes is not None:
            result["kubernetes"] = _kubernetes_to_dict(self.kubernetes)
        return result