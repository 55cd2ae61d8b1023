"""Configuration loading and option resolution for kvm-control."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from kvm_control.constants import (
    DEFAULT_ACTION,
    DEFAULT_CONFIG_PATH,
    DEFAULT_CPU,
    DEFAULT_DISK_BUS,
    DEFAULT_DISK_CACHE,
    DEFAULT_NETWORK_MODEL,
    DEFAULT_POOL,
    DEFAULT_RAM,
    DEFAULT_VIRT_TYPE,
    VOLUME_SIZE_RE,
    _LOG_VERBOSE,
)
from kvm_control.exceptions import ControlError
from kvm_control.models import Attributes, DomainSpec, NetworkSpec, Options, VolumeSpec
from kvm_control.utils import log

_VOLUME_FIELDS = ("name", "size", "path", "serial", "cache", "bus")
_NETWORK_FIELDS = ("network", "model")


def load_domain_settings(path: Path) -> List[DomainSpec]:
    """Read the list of domain descriptors from a YAML file."""
    if not path.exists():
        raise ControlError(f"There is no YAML file: {path}")
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ControlError(f"Could not read YAML file: {path}: {exc}")
    if not isinstance(data, list):
        raise ControlError(f"Data format of YAML file: {path} is incorrect!")

    domains = [parse_domain(record, index) for index, record in enumerate(data, start=1)]
    seen = set()
    for domain in domains:
        if domain.name in seen:
            log("WARN", f"Domain: {domain.name} is defined more than once in {path}; the first one is used")
        seen.add(domain.name)
    return domains


def parse_domain(record: Any, index: int = 1) -> DomainSpec:
    if not isinstance(record, dict):
        raise ControlError(f"Domain entry #{index} must be a mapping (got {type(record).__name__})")
    name = record.get("name")
    if not name:
        raise ControlError(f"Domain entry #{index} has no name!")
    name = str(name)
    ram = _positive_int(record.get("ram", DEFAULT_RAM), "ram", name)
    cpu = _positive_int(record.get("cpu", DEFAULT_CPU), "cpu", name)
    volumes = tuple(parse_volume(item, name) for item in _entries(record, "volumes", name))
    networks = tuple(parse_network(item) for item in _entries(record, "networks", name))
    return DomainSpec(name=name, ram=ram, cpu=cpu, volumes=volumes, networks=networks)


def parse_volume(record: Dict[str, Any], domain_name: str) -> VolumeSpec:
    size = _optional_str(record.get("size"))
    if size is not None and not VOLUME_SIZE_RE.match(size):
        raise ControlError(
            f"Invalid size '{size}' of a volume of domain {domain_name}. "
            "Use a number with optional suffix (e.g. '20G', '512MiB')"
        )
    return VolumeSpec(
        name=_optional_str(record.get("name")),
        size=size,
        path=_optional_str(record.get("path")),
        serial=_optional_str(record.get("serial")),
        cache=str(record.get("cache") or DEFAULT_DISK_CACHE),
        bus=str(record.get("bus") or DEFAULT_DISK_BUS),
        extra=_passthrough(record, _VOLUME_FIELDS),
    )


def parse_network(record: Dict[str, Any]) -> NetworkSpec:
    return NetworkSpec(
        network=_optional_str(record.get("network")),
        model=str(record.get("model") or DEFAULT_NETWORK_MODEL),
        extra=_passthrough(record, _NETWORK_FIELDS),
    )


def domain_to_dict(domain: DomainSpec) -> Dict[str, Any]:
    """Serialise a domain back to the configuration file shape."""
    volumes = []
    for volume in domain.volumes:
        entry: Dict[str, Any] = {}
        for key in _VOLUME_FIELDS:
            value = getattr(volume, key)
            if value is not None:
                entry[key] = value
        entry.update(volume.extra)
        volumes.append(entry)
    networks = []
    for network in domain.networks:
        entry = {}
        if network.network is not None:
            entry["network"] = network.network
        entry.update(network.extra)
        entry["model"] = network.model
        networks.append(entry)
    return {
        "name": domain.name,
        "ram": domain.ram,
        "cpu": domain.cpu,
        "volumes": volumes,
        "networks": networks,
    }


def dump_domains(domains: Sequence[DomainSpec]) -> str:
    return yaml.safe_dump([domain_to_dict(domain) for domain in domains], sort_keys=False)


def resolve_options(args: argparse.Namespace) -> Options:
    """Build the immutable run options from parsed command-line arguments."""
    action = args.action or DEFAULT_ACTION
    return Options(
        action=action,
        config_path=Path(args.yaml) if args.yaml else DEFAULT_CONFIG_PATH,
        pool=args.pool or DEFAULT_POOL,
        virt_type="qemu" if args.qemu else DEFAULT_VIRT_TYPE,
        hosts=tuple(dict.fromkeys(name for name in (args.hosts or []) if name)),
        all_domains=bool(args.all) or action == "list",
        debug=bool(args.debug) or action == "console" or _LOG_VERBOSE,
    )


def require_working_set(options: Options, domain_names: Sequence[str]) -> None:
    """Refuse to run without host names unless every domain was requested."""
    if options.all_domains or options.hosts:
        return
    defined = ", ".join(domain_names) or "<none>"
    raise ControlError(
        "You have to provide the names of the hosts to work with. "
        "Give one or more host names or use '-a' to work on all defined hosts! "
        f"Defined hosts: {defined}"
    )


def _entries(record: Dict[str, Any], key: str, domain_name: str) -> List[Dict[str, Any]]:
    value = record.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ControlError(f"'{key}' of domain {domain_name} must be a list")
    for item in value:
        if not isinstance(item, dict):
            raise ControlError(f"Every entry of '{key}' of domain {domain_name} must be a mapping")
    return value


def _positive_int(value: Any, field: str, domain_name: str) -> str:
    raw = str(value).strip()
    if isinstance(value, bool) or not raw.isdigit() or int(raw) < 1:
        raise ControlError(f"'{field}' of domain {domain_name} must be a positive integer (got '{value}')")
    return raw


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _passthrough(record: Dict[str, Any], known: Sequence[str]) -> Attributes:
    return tuple((str(key), str(value)) for key, value in record.items() if key not in known and value is not None)
