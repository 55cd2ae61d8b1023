"""Data models for kvm-control."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

from kvm_control.constants import (
    DEFAULT_ACTION,
    DEFAULT_CPU,
    DEFAULT_DISK_BUS,
    DEFAULT_DISK_CACHE,
    DEFAULT_NETWORK_MODEL,
    DEFAULT_POOL,
    DEFAULT_RAM,
    DEFAULT_VIRT_TYPE,
    STATE_RUNNING,
)

Attributes = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class VolumeSpec:
    name: Optional[str] = None
    size: Optional[str] = None
    path: Optional[str] = None
    serial: Optional[str] = None
    cache: str = DEFAULT_DISK_CACHE
    bus: str = DEFAULT_DISK_BUS
    # Forwarded verbatim to the --disk descriptor, in configuration order
    extra: Attributes = ()


@dataclass(frozen=True)
class NetworkSpec:
    network: Optional[str] = None
    model: str = DEFAULT_NETWORK_MODEL
    extra: Attributes = ()


@dataclass(frozen=True)
class DomainSpec:
    name: str
    ram: str = DEFAULT_RAM
    cpu: str = DEFAULT_CPU
    volumes: Tuple[VolumeSpec, ...] = ()
    networks: Tuple[NetworkSpec, ...] = ()


@dataclass(frozen=True)
class DomainStatus:
    state: str
    id: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.state == STATE_RUNNING

    def as_dict(self) -> Dict[str, str]:
        data = {"state": self.state}
        if self.id is not None:
            data["id"] = self.id
        return data


@dataclass(frozen=True)
class Options:
    """Run options, resolved once at startup."""

    action: str = DEFAULT_ACTION
    config_path: Optional[Path] = None
    pool: str = DEFAULT_POOL
    virt_type: str = DEFAULT_VIRT_TYPE
    hosts: Tuple[str, ...] = ()
    all_domains: bool = False
    debug: bool = False
