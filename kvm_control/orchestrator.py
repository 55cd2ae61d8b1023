"""Sequencing of hypervisor calls for the top-level kvm-control actions."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional, Sequence

from kvm_control.config import dump_domains
from kvm_control.constants import STATE_MISSING
from kvm_control.exceptions import ControlError
from kvm_control.hypervisor import Hypervisor
from kvm_control.models import DomainSpec, Options, VolumeSpec
from kvm_control.utils import log


class Orchestrator:
    """Apply one lifecycle action to the working set of configured domains.

    Every per-domain step asks the hypervisor for the current state again
    right before acting on it; nothing is remembered between steps.
    """

    def __init__(self, options: Options, settings: Sequence[DomainSpec], hypervisor: Hypervisor) -> None:
        self.options = options
        self.settings = list(settings)
        self.hypervisor = hypervisor

    @property
    def pool(self) -> str:
        return self.options.pool

    @property
    def domains(self) -> List[DomainSpec]:
        """Configured domains selected by ``--all`` or by name."""
        selected: List[DomainSpec] = []
        for name in self.domain_names:
            if self.options.all_domains or name in self.options.hosts:
                selected.append(self.find_domain(name))
        return selected

    @property
    def domain_names(self) -> List[str]:
        return list(dict.fromkeys(domain.name for domain in self.settings))

    def find_domain(self, name: str) -> Optional[DomainSpec]:
        for domain in self.settings:
            if domain.name == name:
                return domain
        return None

    def run(self, action: Optional[str] = None) -> None:
        action = action or self.options.action
        handlers: Dict[str, Callable[[], None]] = {
            "list": self.action_list,
            "config": self.action_config,
            "create": self.action_create,
            "delete": self.action_delete,
            "recreate": self.action_recreate,
            "start": self.action_start,
            "stop": self.action_stop,
        }
        handler = handlers.get(action)
        if handler is None:
            raise ControlError(f"Unknown action '{action}'")
        log("DEBUG", f"Action: {action}")
        handler()

    # -- actions ---------------------------------------------------------

    def action_list(self) -> None:
        names = self.domain_names
        if not names:
            log("WARN", "No domains are configured")
            return
        statuses = self.hypervisor.domain_list()
        width = max(len(name) for name in names)
        for name in names:
            status = statuses.get(name)
            state = status.state if status is not None else STATE_MISSING
            print(f"{name.ljust(width)} - {state}", flush=True)

    def action_config(self) -> None:
        print(dump_domains(self.domains), end="", flush=True)

    def action_create(self) -> None:
        self.volumes_create()
        self.domains_create()
        self.domains_start()
        self.domains_autostart()

    def action_delete(self) -> None:
        self.domains_stop()
        self.domains_delete()
        self.volumes_delete()

    def action_recreate(self) -> None:
        self.action_delete()
        self.action_create()

    def action_start(self) -> None:
        self.domains_start()

    def action_stop(self) -> None:
        self.domains_stop()

    # -- volumes ---------------------------------------------------------

    def volumes_create(self) -> None:
        log("DEBUG", "Call: volumes_create")
        for domain in self.domains:
            for volume in domain.volumes:
                if not volume.name or not volume.size:
                    log("WARN", f"Volume: {volume!r} of domain {domain.name} needs a name and a size! Skipping!")
                    continue
                if self.hypervisor.volume_defined(volume.name, self.pool):
                    log("WARN", f"Volume: {volume.name} of the pool: {self.pool} is already created! Skipping!")
                    continue
                if volume.path:
                    log("INFO", f"Volume: {volume.name} has a path already defined. Assuming it's already created!")
                    continue
                self.hypervisor.volume_create(volume.name, self.pool, volume.size)

    def volumes_delete(self) -> None:
        log("DEBUG", "Call: volumes_delete")
        for domain in self.domains:
            for volume in domain.volumes:
                if not volume.name:
                    continue
                if not self.hypervisor.volume_defined(volume.name, self.pool):
                    log("INFO", f"Volume: {volume.name} of the pool: {self.pool} is not defined! Skipping!")
                    continue
                self.hypervisor.volume_delete(volume.name, self.pool)

    def resolve_volume_paths(self, domain: DomainSpec) -> DomainSpec:
        """Return the domain with pool paths filled in for volumes lacking one."""
        volumes: List[VolumeSpec] = []
        for volume in domain.volumes:
            if not volume.path and volume.name:
                volume = replace(volume, path=self.hypervisor.volume_path(volume.name, self.pool))
            volumes.append(volume)
        return replace(domain, volumes=tuple(volumes))

    # -- domains ---------------------------------------------------------

    def domains_create(self) -> None:
        log("DEBUG", "Call: domains_create")
        for domain in self.domains:
            if self.hypervisor.domain_defined(domain.name):
                log("WARN", f"Domain: {domain.name} is already defined! Skipping!")
                continue
            self.hypervisor.domain_create(self.resolve_volume_paths(domain))
            log("SUCCESS", f"Domain: {domain.name} created")

    def domains_delete(self) -> None:
        log("DEBUG", "Call: domains_delete")
        for name in self._defined_domain_names():
            self.hypervisor.domain_delete(name)

    def domains_start(self) -> None:
        log("DEBUG", "Call: domains_start")
        for name in self._defined_domain_names():
            if self.hypervisor.domain_started(name):
                log("WARN", f"Domain: {name} is already started! Skipping!")
                continue
            self.hypervisor.domain_start(name)

    def domains_stop(self) -> None:
        log("DEBUG", "Call: domains_stop")
        for name in self._defined_domain_names():
            if not self.hypervisor.domain_started(name):
                log("WARN", f"Domain: {name} is not started! Skipping!")
                continue
            self.hypervisor.domain_stop(name)

    def domains_autostart(self) -> None:
        log("DEBUG", "Call: domains_autostart")
        for name in self._defined_domain_names():
            self.hypervisor.domain_autostart(name)

    def domains_no_autostart(self) -> None:
        log("DEBUG", "Call: domains_no_autostart")
        for name in self._defined_domain_names():
            self.hypervisor.domain_no_autostart(name)

    def _defined_domain_names(self) -> Iterator[str]:
        """Yield working-set names the hypervisor knows, checked one at a time."""
        for domain in self.domains:
            if not self.hypervisor.domain_defined(domain.name):
                log("WARN", f"Domain: {domain.name} is not defined! Skipping!")
                continue
            yield domain.name
