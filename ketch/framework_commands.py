"""Listing, exporting and removing frameworks."""

from __future__ import annotations

import dataclasses
import sys
from dataclasses import dataclass
from typing import Protocol, TextIO

import yaml

from .columns import write
from .errors import KetchError
from .framework import Framework

SKIP_NS_REMOVAL_MSG = "Skipping namespace removal..."


class FrameworkClient(Protocol):
    """Access to the frameworks and namespaces of a cluster."""

    def list_frameworks(self) -> list[Framework]:
        """Return every framework of the cluster."""

    def get_framework(self, name: str) -> Framework:
        """Return the named framework; raise if there is none."""

    def delete_framework(self, framework: Framework) -> None:
        """Delete the framework from the cluster."""

    def delete_namespace(self, name: str) -> None:
        """Delete the named namespace; raise if there is none."""


@dataclass(frozen=True)
class FrameworkListRow:
    """One row of the framework listing."""

    name: str
    status: str
    namespace: str
    ingress_type: str
    ingress_class_name: str
    cluster_issuer: str
    apps: str


def _list(client: FrameworkClient, message: str) -> list[Framework]:
    try:
        return client.list_frameworks()
    except Exception as err:
        raise KetchError(f"{message}: {err}") from err


def generate_framework_list_output(frameworks: list[Framework]) -> list[FrameworkListRow]:
    rows = []
    for item in frameworks:
        count = len(item.status.apps)
        quota = item.spec.app_quota_limit
        apps = f"{count}/{quota}" if quota is not None and quota > 0 else str(count)
        ingress = item.spec.ingress_controller
        rows.append(
            FrameworkListRow(
                name=item.name,
                status=str(item.status.phase) if item.status.phase else "",
                namespace=item.spec.namespace_name,
                ingress_type=str(ingress.ingress_type) if ingress.ingress_type else "",
                ingress_class_name=ingress.class_name,
                cluster_issuer=ingress.cluster_issuer,
                apps=apps,
            )
        )
    return rows


def framework_list(client: FrameworkClient, out: TextIO) -> None:
    """Write a table of all frameworks to ``out``."""
    frameworks = _list(client, "failed to get list of frameworks")
    write(generate_framework_list_output(frameworks), out, "column")


def framework_list_names(client: FrameworkClient, *args: str) -> list[str]:
    """Names of the frameworks, or those containing any of the given filters."""
    frameworks = _list(client, "failed to get list of frameworks")
    names: list[str] = []
    for framework in frameworks:
        if not args:
            names.append(framework.name)
        names.extend(framework.name for name_filter in args if name_filter in framework.name)
    return names


def export_framework(client: FrameworkClient, framework_name: str, filename: str) -> None:
    """Write the framework's spec as YAML to a new file."""
    framework = client.get_framework(framework_name)
    spec = dataclasses.replace(framework.spec, name=framework.name)
    text = yaml.safe_dump(spec.to_dict(), default_flow_style=False, sort_keys=True)
    try:
        with open(filename, "x", encoding="utf-8") as handle:
            handle.write(text)
    except FileExistsError as err:
        raise FileExistsError("file already exists") from err


def handle_namespace_removal_response(response: str, namespace: str, out: TextIO) -> bool:
    if response != namespace:
        out.write(SKIP_NS_REMOVAL_MSG + "\n")
        return False
    return True


def user_wants_to_remove_namespace(namespace: str, out: TextIO, reader: TextIO) -> bool:
    """Ask the user to type the namespace name to confirm its removal."""
    out.write(
        "Do you want to remove the namespace along with the framework? "
        f"Please enter namespace to confirm ({namespace}): "
    )
    tokens = reader.readline().split()
    response = tokens[0] if tokens else ""
    return handle_namespace_removal_response(response, namespace, out)


def check_namespace_additional_frameworks(client: FrameworkClient, target: Framework) -> None:
    """Raise if another framework shares the target framework's namespace."""
    frameworks = _list(client, "failed to list frameworks")
    for framework in frameworks:
        if (
            framework.name != target.name
            and framework.spec.namespace_name == target.spec.namespace_name
        ):
            names = [f.name for f in frameworks]
            raise KetchError(
                f"Namespace contains other frameworks than {target.name}, and cannot be removed:\n"
                f"Frameworks in target namespace:{names}"
            )


def remove_namespace(client: FrameworkClient, framework: Framework) -> None:
    try:
        client.delete_namespace(framework.spec.namespace_name)
    except Exception as err:
        raise KetchError(f"failed to remove the namespace: {err}") from err


def framework_remove(
    client: FrameworkClient,
    name: str,
    out: TextIO,
    reader: TextIO | None = None,
) -> None:
    """Remove a framework, and its namespace if the user confirms it."""
    reader = sys.stdin if reader is None else reader
    try:
        framework = client.get_framework(name)
    except Exception as err:
        raise KetchError(f"failed to get framework: {err}") from err

    if user_wants_to_remove_namespace(framework.spec.namespace_name, out, reader):
        try:
            check_namespace_additional_frameworks(client, framework)
            remove_namespace(client, framework)
        except KetchError as err:
            out.write(f"{err}\n{SKIP_NS_REMOVAL_MSG}")
        else:
            out.write("Namespace successfully removed!\n")

    try:
        client.delete_framework(framework)
    except Exception as err:
        raise KetchError(f"failed to remove the framework: {err}") from err

    out.write("Framework successfully removed!\n")