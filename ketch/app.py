"""Applications, their deployments and the operations performed on them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from .errors import CanaryError, DeploymentNotFoundError, ProcessNotFoundError
from .framework import Framework
from .ketch_yaml import KetchYamlData
from .ports import ExposedPort
from .selector import Selector

SHIPA_CLOUD_DOMAIN = "shipa.cloud"
DEFAULT_NUMBER_OF_UNITS = 1


class AppPhase(str, Enum):
    """High-level summary of where an application is in its lifecycle."""

    CREATED = "Created"
    ERROR = "Error"
    RUNNING = "Running"

    def __str__(self) -> str:
        return self.value


class AppConditionType(str, Enum):
    SCHEDULED = "Scheduled"

    def __str__(self) -> str:
        return self.value


class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class PodState(str, Enum):
    """Simplified state of a pod in the cluster."""

    RUNNING = "running"
    DEPLOYING = "deploying"
    ERROR = "error"
    SUCCEEDED = "succeeded"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Env:
    """An environment variable of an application."""

    name: str
    value: str = ""


@dataclass(frozen=True)
class Label:
    name: str
    value: str = ""


@dataclass
class RoutingSettings:
    """Share of incoming traffic, 0-255, routed to a deployment."""

    weight: int = 0


@dataclass
class ProcessSpec:
    """Desired behaviour of a process."""

    name: str = ""
    units: int | None = None
    env: list[Env] = field(default_factory=list)
    cmd: list[str] = field(default_factory=list)
    security_context: dict[str, Any] | None = None


@dataclass
class AppDeploymentSpec:
    """One deployment of an application image."""

    image: str = ""
    version: int = 0
    processes: list[ProcessSpec] = field(default_factory=list)
    ketch_yaml: KetchYamlData | None = None
    labels: list[Label] = field(default_factory=list)
    routing_settings: RoutingSettings = field(default_factory=RoutingSettings)
    exposed_ports: list[ExposedPort] = field(default_factory=list)

    def set_units(self, process: str, units: int) -> None:
        for spec in self.processes:
            if spec.name == process:
                spec.units = units
                return
        raise ProcessNotFoundError()

    def set_units_for_all_processes(self, units: int) -> None:
        for spec in self.processes:
            spec.units = units


@dataclass
class IngressSpec:
    """Entrypoints to access an application."""

    generate_default_cname: bool = False
    cnames: list[str] = field(default_factory=list)


@dataclass
class DockerRegistrySpec:
    secret_name: str = ""


@dataclass
class AppCondition:
    type: AppConditionType
    status: ConditionStatus
    last_transition_time: datetime | None = None
    message: str = ""


@dataclass
class AppStatus:
    conditions: list[AppCondition] = field(default_factory=list)
    framework: str | None = None

    def condition(self, condition_type: AppConditionType) -> AppCondition | None:
        """Return a copy of the condition of the given type, if there is one."""
        for cond in self.conditions:
            if cond.type == condition_type:
                return dataclasses.replace(cond)
        return None


@dataclass
class CanarySpec:
    """Configuration of a canary deployment."""

    steps: int = 0
    step_weight: int = 0
    step_time_interval: timedelta = field(default_factory=timedelta)
    next_scheduled_time: datetime | None = None
    current_step: int = 0
    active: bool = False
    started: datetime | None = None


@dataclass
class AppSpec:
    """Desired state of an application."""

    version: str | None = None
    description: str = ""
    canary: CanarySpec = field(default_factory=CanarySpec)
    deployments: list[AppDeploymentSpec] = field(default_factory=list)
    deployments_count: int = 0
    env: list[Env] = field(default_factory=list)
    framework: str = ""
    ingress: IngressSpec = field(default_factory=IngressSpec)
    docker_registry: DockerRegistrySpec = field(default_factory=DockerRegistrySpec)
    builder: str = ""
    build_packs: list[str] = field(default_factory=list)


@dataclass
class App:
    """An application and its deployments."""

    name: str = ""
    spec: AppSpec = field(default_factory=AppSpec)
    status: AppStatus = field(default_factory=AppStatus)

    def _selected(self, selector: Selector):
        for deployment in self.spec.deployments:
            if selector.deployment_version is not None and selector.deployment_version != deployment.version:
                continue
            yield deployment

    def set_units(self, selector: Selector, units: int) -> None:
        """Set the number of units of the selected processes."""
        found = False
        for deployment in self._selected(selector):
            if selector.process is not None:
                deployment.set_units(selector.process, units)
            else:
                deployment.set_units_for_all_processes(units)
            found = True
        if selector.deployment_version is not None and not found:
            raise DeploymentNotFoundError()

    def set_envs(self, envs: list[Env]) -> None:
        """Add the given variables, replacing the value of those already present."""
        pending = {env.name: env for env in envs}
        updated = [pending.pop(env.name, env) for env in self.spec.env]
        self.spec.env = updated + list(pending.values())

    def envs(self, names: list[str]) -> dict[str, str]:
        """Return the values of the named variables, or of all of them if none are named."""
        wanted = set(names)
        return {env.name: env.value for env in self.spec.env if not wanted or env.name in wanted}

    def unset_envs(self, names: list[str]) -> None:
        removed = set(names)
        self.spec.env = [env for env in self.spec.env if env.name not in removed]

    def stop(self, selector: Selector) -> None:
        self.set_units(selector, 0)

    def start(self, selector: Selector) -> None:
        """Give one unit to each selected process that has none; running processes are kept."""
        found = False
        for deployment in self._selected(selector):
            for spec in deployment.processes:
                if selector.process is not None:
                    if spec.name == selector.process and not spec.units:
                        spec.units = 1
                elif spec.units is None or spec.units <= 1:
                    spec.units = 1
            found = True
        if selector.deployment_version is not None and not found:
            raise DeploymentNotFoundError()

    def cnames(self, framework: Framework) -> list[str]:
        """All URLs to reach the application, the default cname first."""
        scheme = "https" if framework.spec.ingress_controller.cluster_issuer else "http"
        result = []
        default = self.default_cname(framework)
        if default is not None:
            result.append(f"http://{default}")
        result.extend(f"{scheme}://{cname}" for cname in self.spec.ingress.cnames)
        return result

    def default_cname(self, framework: Framework | None) -> str | None:
        """The <app name>.<service endpoint>.shipa.cloud name, when one applies."""
        if framework is None or not self.spec.ingress.generate_default_cname:
            return None
        endpoint = framework.spec.ingress_controller.service_endpoint
        if not endpoint:
            return None
        return f"{self.name}.{endpoint}.{SHIPA_CLOUD_DOMAIN}"

    def units(self) -> int:
        """Total number of units; a process without a count has one."""
        return sum(
            DEFAULT_NUMBER_OF_UNITS if spec.units is None else spec.units
            for deployment in self.spec.deployments
            for spec in deployment.processes
        )

    def exposed_ports(self) -> dict[int, list[ExposedPort]]:
        return {deployment.version: deployment.exposed_ports for deployment in self.spec.deployments}

    def set_condition(
        self,
        condition_type: AppConditionType,
        status: ConditionStatus,
        message: str,
        time: datetime,
    ) -> None:
        """Record a condition; an unchanged status and message keeps the old timestamp."""
        new = AppCondition(type=condition_type, status=status, last_transition_time=time, message=message)
        for index, cond in enumerate(self.status.conditions):
            if cond.type == condition_type:
                if cond.status == status and cond.message == message:
                    return
                self.status.conditions[index] = new
                return
        self.status.conditions.append(new)

    def phase(self) -> AppPhase:
        if any(cond.status == ConditionStatus.FALSE for cond in self.status.conditions):
            return AppPhase.ERROR
        if self.units() == 0:
            return AppPhase.CREATED
        return AppPhase.RUNNING

    def do_canary(self, now: datetime) -> None:
        """Shift traffic one step towards the canary deployment when its time has come."""
        canary = self.spec.canary
        if not canary.active:
            return
        if len(self.spec.deployments) <= 1:
            raise CanaryError("no canary deployment found")
        if canary.next_scheduled_time is None:
            raise CanaryError("canary is active but the next step is not scheduled")
        if canary.next_scheduled_time > now:
            return

        primary, target = self.spec.deployments[0], self.spec.deployments[1]
        primary.routing_settings.weight = (primary.routing_settings.weight - canary.step_weight) % 256
        target.routing_settings.weight = (target.routing_settings.weight + canary.step_weight) % 256
        canary.current_step += 1
        canary.next_scheduled_time = canary.next_scheduled_time + canary.step_time_interval

        if target.routing_settings.weight >= 100 or canary.current_step == canary.steps:
            # The last step may leave the weight short of 100 (e.g. 3 steps of 33).
            target.routing_settings.weight = 100
            canary.active = False
            canary.current_step = canary.steps
            canary.next_scheduled_time = None
            self.spec.deployments = [target]

    def do_rollback(self) -> None:
        """Send all traffic back to the primary deployment and stop the canary."""
        self.spec.deployments[0].routing_settings.weight = 100
        self.spec.deployments[1].routing_settings.weight = 0
        self.spec.canary.active = False