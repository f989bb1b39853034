"""Selection of the processes and deployments an action applies to."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Selector:
    """Targets of an action.

    With neither a process nor a deployment version, the action applies to all
    processes of all deployments.
    """

    process: str | None = None
    deployment_version: int | None = None


def new_selector(deployment_version: int, process_name: str) -> Selector:
    """Build a selector; an empty process name or a non-positive version selects all."""
    return Selector(
        process=process_name or None,
        deployment_version=deployment_version if deployment_version > 0 else None,
    )