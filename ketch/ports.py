"""Ports exposed by a container image."""

from __future__ import annotations

import re
from dataclasses import dataclass

_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class ExposedPort:
    """A port exposed by a docker image, natively written as "port/PROTOCOL"."""

    port: int = 0
    protocol: str = ""

    def to_docker_format(self) -> str:
        if self.port == 0 and self.protocol == "":
            return ""
        return f"{self.port}/{self.protocol}"

    @classmethod
    def parse(cls, port: str) -> ExposedPort:
        """Parse a "port/PROTOCOL" string; the protocol is upper-cased."""
        number, sep, protocol = port.partition("/")
        if not sep or not _INTEGER.fullmatch(number):
            raise ValueError(f"invalid port: {port}")
        return cls(port=int(number), protocol=protocol.upper())