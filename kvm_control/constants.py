"""Global constants and defaults for kvm-control."""

from __future__ import annotations

import os
import re
from pathlib import Path

DEFAULT_CONFIG_PATH = Path(os.environ.get("KVM_CONTROL_CONFIG", "/etc/kvm_hosts.yaml"))
DEFAULT_POOL = os.environ.get("KVM_CONTROL_POOL", "default")
TRUTHY = {"1", "true", "yes", "on"}

VIRSH = "virsh"
VIRT_INSTALL = "virt-install"
VIRT_TYPES = ("kvm", "qemu")
DEFAULT_VIRT_TYPE = "kvm"

DEFAULT_RAM = "1024"
DEFAULT_CPU = "2"
DEFAULT_DISK_CACHE = "none"
DEFAULT_DISK_BUS = "virtio"
DEFAULT_NETWORK_MODEL = "virtio"

# Base flags appended after --name/--ram/--vcpus/--os-type/--virt-type
CREATE_BOOT_FLAGS = (
    "--pxe",
    "--boot", "network,hd",
    "--noautoconsole",
    "--graphics", "vnc,listen=0.0.0.0",
    "--autostart",
)
OS_TYPE = "linux"

STATE_RUNNING = "running"
STATE_MISSING = "missing"

DOMAIN_LIST_HEADER = "Id"
VOLUME_LIST_HEADER = "Name"
NO_ID = "-"

# Scaled integers accepted by `virsh vol-create-as` (10G, 512MiB, 1TB, 4096)
VOLUME_SIZE_RE = re.compile(r"^\d+(?:[KMGTPE](?:i?B)?|B)?$", re.IGNORECASE)

DEFAULT_ACTION = "create"

_LOG_VERBOSE = os.environ.get("LOG_VERBOSE", "").lower() in TRUTHY
