"""Facade over the libvirt command-line tools (virsh, virt-install)."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from kvm_control.constants import (
    CREATE_BOOT_FLAGS,
    DEFAULT_VIRT_TYPE,
    OS_TYPE,
    STATE_MISSING,
    VIRSH,
    VIRT_INSTALL,
    VIRT_TYPES,
)
from kvm_control.exceptions import ControlError
from kvm_control.models import DomainSpec, DomainStatus, NetworkSpec, VolumeSpec
from kvm_control.parsers import parse_domain_list, parse_volume_list
from kvm_control.utils import generate_disk_serial, join_attributes, log, run_command


class Hypervisor:
    """Domain and storage volume operations built as fixed command lines.

    Success or failure of every call is derived only from the exit status of
    the spawned process. Queries are never cached: each one re-runs the
    listing command and re-parses its output.
    """

    def __init__(self, virt_type: str = DEFAULT_VIRT_TYPE) -> None:
        if virt_type not in VIRT_TYPES:
            raise ControlError(f"Unsupported virtualization type '{virt_type}'. Supported: {', '.join(VIRT_TYPES)}")
        self.virt_type = virt_type

    def run(self, command: Sequence[object]) -> Tuple[str, bool]:
        return run_command(command)

    # -- domains ---------------------------------------------------------

    def domain_delete(self, name: str) -> bool:
        command = [VIRSH, "undefine", name]
        log("DEBUG", f"Domain delete: {' '.join(command)}")
        _output, success = self.run(command)
        if not success:
            raise ControlError(f"Failed to delete domain: {name}")
        return success

    def domain_start(self, name: str) -> bool:
        return self._domain_command(["start", name], "start", f"Failed to start domain: {name}")

    def domain_stop(self, name: str) -> bool:
        return self._domain_command(["destroy", name], "stop", f"Failed to stop domain: {name}")

    def domain_autostart(self, name: str) -> bool:
        return self._domain_command(["autostart", name], "autostart", f"Failed to autostart domain: {name}")

    def domain_no_autostart(self, name: str) -> bool:
        return self._domain_command(
            ["autostart", "--disable", name],
            "no autostart",
            f"Failed to disable autostart of domain: {name}",
        )

    def _domain_command(self, args: List[str], label: str, failure: str) -> bool:
        command = [VIRSH, *args]
        log("DEBUG", f"Domain {label}: {' '.join(command)}")
        _output, success = self.run(command)
        if not success:
            log("WARN", failure)
        return success

    def domain_list(self) -> Dict[str, DomainStatus]:
        output, success = self.run([VIRSH, "list", "--all"])
        if not success:
            raise ControlError("Failed to get domain list! Is the libvirt service running?")
        return parse_domain_list(output)

    def domain_state(self, name: str) -> str:
        status = self.domain_list().get(name)
        if status is None:
            return STATE_MISSING
        return status.state

    def domain_started(self, name: str) -> bool:
        status = self.domain_list().get(name)
        return status is not None and status.running

    def domain_defined(self, name: str) -> bool:
        return name in self.domain_list()

    def domain_create(self, domain: DomainSpec) -> bool:
        command = self.build_create_command(domain)
        log("DEBUG", f"Domain create: {' '.join(command)}")
        _output, success = self.run(command)
        if not success:
            raise ControlError(f"Failed to create the domain: {domain.name}")
        return success

    def build_create_command(self, domain: DomainSpec) -> List[str]:
        """Assemble the virt-install command line for a domain."""
        if not domain.name:
            raise ControlError("There is no domain name!")
        command = [
            VIRT_INSTALL,
            "--name", domain.name,
            "--ram", str(domain.ram),
            "--vcpus", f"{domain.cpu},cores={domain.cpu}",
            "--os-type", OS_TYPE,
            "--virt-type", self.virt_type,
            *CREATE_BOOT_FLAGS,
        ]
        for volume in domain.volumes:
            disk = self.disk_descriptor(volume)
            if disk is None:
                continue
            command += ["--disk", disk]
        for network in domain.networks:
            nic = self.network_descriptor(network)
            if nic is None:
                continue
            command += ["--network", nic]
        return command

    @staticmethod
    def disk_descriptor(volume: VolumeSpec) -> Optional[str]:
        """Render the --disk value of a volume, or None when it has no path."""
        if not volume.path:
            log("WARN", f"Volume: {volume!r} has no path defined! Skipping!")
            return None
        serial = volume.serial or generate_disk_serial()
        pairs = [
            ("path", volume.path),
            ("serial", serial),
            ("cache", volume.cache),
            ("bus", volume.bus),
            *volume.extra,
        ]
        return join_attributes(pairs)

    @staticmethod
    def network_descriptor(network: NetworkSpec) -> Optional[str]:
        """Render the --network value of a network, or None when it has no target."""
        if not network.network:
            log("WARN", f"Network: {network!r} has no 'network' defined! Skipping!")
            return None
        # model is always rendered last, wherever it appeared in the config
        pairs = [("network", network.network), *network.extra, ("model", network.model)]
        return join_attributes(pairs)

    # -- volumes ---------------------------------------------------------

    def volume_create(self, name: str, pool: str, size: str) -> bool:
        command = [VIRSH, "vol-create-as", pool, name, str(size)]
        log("DEBUG", f"Volume create: {' '.join(command)}")
        _output, success = self.run(command)
        if not success:
            raise ControlError(f"Failed to create volume: {name}")
        return success

    def volume_delete(self, name: str, pool: str) -> bool:
        command = [VIRSH, "vol-delete", "--pool", pool, name]
        log("DEBUG", f"Volume delete: {' '.join(command)}")
        _output, success = self.run(command)
        if not success:
            raise ControlError(f"Failed to delete volume: {name}")
        return success

    def volume_list(self, pool: str) -> Dict[str, str]:
        output, success = self.run([VIRSH, "vol-list", "--pool", pool])
        if not success:
            raise ControlError(f"Failed to get volume list of pool: {pool}!")
        return parse_volume_list(output)

    def volume_path(self, name: str, pool: str) -> Optional[str]:
        return self.volume_list(pool).get(name)

    def volume_defined(self, name: str, pool: str) -> bool:
        return name in self.volume_list(pool)
