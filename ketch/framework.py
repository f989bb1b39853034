"""Framework resources and their admission validation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from .errors import (
    ChangeNamespaceWhenAppsRunningError,
    DecreaseQuotaError,
    DeleteFrameworkWithRunningAppsError,
    NamespaceIsUsedByAnotherFrameworkError,
)

log = logging.getLogger("ketch.framework")


class IngressControllerType(str, Enum):
    TRAEFIK = "traefik"
    ISTIO = "istio"

    def __str__(self) -> str:
        return self.value


class FrameworkPhase(str, Enum):
    CREATED = "Created"
    FAILED = "Failed"

    def __str__(self) -> str:
        return self.value


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


@dataclass
class IngressControllerSpec:
    """Configuration of a framework's ingress controller."""

    class_name: str = ""
    service_endpoint: str = ""
    ingress_type: IngressControllerType | None = None
    cluster_issuer: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.class_name:
            data["className"] = self.class_name
        if self.service_endpoint:
            data["serviceEndpoint"] = self.service_endpoint
        data["type"] = self.ingress_type.value if self.ingress_type else ""
        if self.cluster_issuer:
            data["clusterIssuer"] = self.cluster_issuer
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> IngressControllerSpec:
        data = data or {}
        raw_type = data.get("type")
        return cls(
            class_name=_text(data, "className"),
            service_endpoint=_text(data, "serviceEndpoint"),
            ingress_type=IngressControllerType(raw_type) if raw_type else None,
            cluster_issuer=_text(data, "clusterIssuer"),
        )


@dataclass
class FrameworkSpec:
    """Desired state of a framework."""

    version: str = ""
    name: str = ""
    namespace_name: str = ""
    app_quota_limit: int | None = None
    ingress_controller: IngressControllerSpec = field(default_factory=IngressControllerSpec)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.version:
            data["version"] = self.version
        data["name"] = self.name
        data["namespace"] = self.namespace_name
        data["appQuotaLimit"] = self.app_quota_limit
        data["ingressController"] = self.ingress_controller.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> FrameworkSpec:
        data = data or {}
        quota = data.get("appQuotaLimit")
        if quota is not None and (isinstance(quota, bool) or not isinstance(quota, int)):
            raise ValueError(f"appQuotaLimit must be an integer, got {quota!r}")
        return cls(
            version=_text(data, "version"),
            name=_text(data, "name"),
            namespace_name=_text(data, "namespace"),
            app_quota_limit=quota,
            ingress_controller=IngressControllerSpec.from_dict(data.get("ingressController")),
        )


@dataclass
class FrameworkStatus:
    """Observed state of a framework."""

    phase: FrameworkPhase | None = None
    message: str = ""
    namespace: str | None = None
    apps: list[str] = field(default_factory=list)


class FrameworkLister(Protocol):
    """Anything able to list the frameworks of a cluster."""

    def list_frameworks(self) -> list[Framework]:
        """Return every framework known to the cluster."""


@dataclass
class Framework:
    """A framework: a namespace and ingress setup that apps are deployed to."""

    name: str = ""
    spec: FrameworkSpec = field(default_factory=FrameworkSpec)
    status: FrameworkStatus = field(default_factory=FrameworkStatus)

    def has_app(self, name: str) -> bool:
        return name in self.status.apps

    def validate_create(self, lister: FrameworkLister) -> None:
        """Reject a new framework whose namespace is already taken."""
        log.info("validate create name=%s", self.name)
        for framework in lister.list_frameworks():
            if framework.spec.namespace_name == self.spec.namespace_name:
                raise NamespaceIsUsedByAnotherFrameworkError()

    def validate_update(self, old: Framework, lister: FrameworkLister) -> None:
        """Reject an update that moves a busy framework or shrinks its quota too far."""
        log.info("validate update name=%s", self.name)
        if not isinstance(old, Framework):
            raise TypeError("can't validate framework update")

        if old.spec.namespace_name != self.spec.namespace_name:
            if self.status.apps:
                raise ChangeNamespaceWhenAppsRunningError()
            for framework in lister.list_frameworks():
                if (
                    framework.spec.namespace_name == self.spec.namespace_name
                    and framework.name != self.name
                ):
                    raise NamespaceIsUsedByAnotherFrameworkError()

        old_quota = old.spec.app_quota_limit
        new_quota = self.spec.app_quota_limit
        if old_quota is not None and new_quota is not None and old_quota != new_quota:
            if new_quota < len(self.status.apps) and new_quota != -1:
                raise DecreaseQuotaError()

    def validate_delete(self) -> None:
        """Reject deleting a framework that still has apps."""
        log.info("validate delete name=%s", self.name)
        if self.status.apps:
            raise DeleteFrameworkWithRunningAppsError()