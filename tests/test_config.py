"""Tests for kvm_control.config module."""

from __future__ import annotations

import argparse
import importlib
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from kvm_control import config, constants
from kvm_control.config import (
    domain_to_dict,
    dump_domains,
    load_domain_settings,
    parse_domain,
    require_working_set,
    resolve_options,
)
from kvm_control.exceptions import ControlError
from kvm_control.models import DomainSpec, NetworkSpec, Options, VolumeSpec


@pytest.fixture
def hosts_file(tmp_path):
    """Create a temporary kvm_hosts.yaml file."""
    data = [
        {
            "name": "web-1",
            "ram": 2048,
            "cpu": 4,
            "volumes": [
                {"name": "web-1_os", "size": "10G", "format": "qcow2"},
                {"name": "web-1_data", "size": 20, "path": "/srv/web-1_data", "serial": 102},
            ],
            "networks": [
                {"network": "pxe", "mac": "52:54:00:6d:38:8f"},
                {"network": "default", "model": "e1000"},
            ],
        },
        {"name": "db-1"},
    ]
    path = tmp_path / "kvm_hosts.yaml"
    path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


def _args(**kwargs) -> argparse.Namespace:
    defaults = {"action": None, "hosts": [], "all": False, "yaml": None, "pool": None, "qemu": False, "debug": False}
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestLoadDomainSettings:
    def test_valid_file(self, hosts_file):
        domains = load_domain_settings(hosts_file)
        assert [d.name for d in domains] == ["web-1", "db-1"]
        web = domains[0]
        assert web.ram == "2048"
        assert web.cpu == "4"
        assert web.volumes[0] == VolumeSpec(name="web-1_os", size="10G", extra=(("format", "qcow2"),))
        assert web.volumes[1].serial == "102"
        assert web.volumes[1].size == "20"
        assert web.networks == (
            NetworkSpec(network="pxe", extra=(("mac", "52:54:00:6d:38:8f"),)),
            NetworkSpec(network="default", model="e1000"),
        )

    def test_defaults(self, hosts_file):
        db = load_domain_settings(hosts_file)[1]
        assert db == DomainSpec(name="db-1")

    def test_missing_file_raises(self, tmp_path):
        missing = tmp_path / "nope.yaml"
        with pytest.raises(ControlError, match="There is no YAML file"):
            load_domain_settings(missing)

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("- name: [unclosed\n")
        with pytest.raises(ControlError, match="Could not read YAML file"):
            load_domain_settings(path)

    def test_not_a_list_raises(self, tmp_path):
        path = tmp_path / "map.yaml"
        path.write_text("name: web-1\n")
        with pytest.raises(ControlError, match="is incorrect"):
            load_domain_settings(path)

    def test_duplicate_names_warn(self, tmp_path):
        path = tmp_path / "dup.yaml"
        path.write_text("- name: a\n- name: a\n  ram: 512\n")
        with patch("kvm_control.config.log") as mock_log:
            domains = load_domain_settings(path)
        assert len(domains) == 2
        mock_log.assert_called_once()
        assert mock_log.call_args[0][0] == "WARN"


class TestParseDomain:
    def test_entry_must_be_mapping(self):
        with pytest.raises(ControlError, match="must be a mapping"):
            parse_domain("web-1", 3)

    def test_name_required(self):
        with pytest.raises(ControlError, match="Domain entry #2 has no name"):
            parse_domain({"ram": 1024}, 2)

    @pytest.mark.parametrize("value", [0, -1, "lots", True, 1.5])
    def test_invalid_ram(self, value):
        with pytest.raises(ControlError, match="'ram' of domain vm must be a positive integer"):
            parse_domain({"name": "vm", "ram": value})

    def test_volumes_must_be_list(self):
        with pytest.raises(ControlError, match="'volumes' of domain vm must be a list"):
            parse_domain({"name": "vm", "volumes": {"name": "os"}})

    def test_network_entries_must_be_mappings(self):
        with pytest.raises(ControlError, match="Every entry of 'networks'"):
            parse_domain({"name": "vm", "networks": ["default"]})

    @pytest.mark.parametrize("size", ["10G", "512MiB", "1", "2TB", "100k"])
    def test_valid_volume_sizes(self, size):
        domain = parse_domain({"name": "vm", "volumes": [{"name": "os", "size": size}]})
        assert domain.volumes[0].size == size

    @pytest.mark.parametrize("size", ["big", "-1G", "10X", "1.5G"])
    def test_invalid_volume_sizes(self, size):
        with pytest.raises(ControlError, match="Invalid size"):
            parse_domain({"name": "vm", "volumes": [{"name": "os", "size": size}]})

    def test_null_passthrough_dropped(self):
        domain = parse_domain({"name": "vm", "networks": [{"network": "default", "mac": None}]})
        assert domain.networks[0].extra == ()


class TestDumpDomains:
    def test_round_trip_shape(self, hosts_file):
        domains = load_domain_settings(hosts_file)
        data = yaml.safe_load(dump_domains(domains))
        assert data[0]["name"] == "web-1"
        assert data[0]["volumes"][0] == {
            "name": "web-1_os",
            "size": "10G",
            "cache": "none",
            "bus": "virtio",
            "format": "qcow2",
        }
        assert data[0]["networks"][0] == {"network": "pxe", "mac": "52:54:00:6d:38:8f", "model": "virtio"}

    def test_domain_to_dict_empty(self):
        assert domain_to_dict(DomainSpec(name="vm")) == {
            "name": "vm",
            "ram": "1024",
            "cpu": "2",
            "volumes": [],
            "networks": [],
        }


class TestResolveOptions:
    def test_named_hosts_deduplicated(self):
        options = resolve_options(_args(hosts=["b", "a", "b"]))
        assert options.hosts == ("b", "a")
        assert options.all_domains is False
        assert options.action == "create"

    def test_list_implies_all(self):
        options = resolve_options(_args(action="list"))
        assert options.all_domains is True

    def test_console_implies_debug(self):
        options = resolve_options(_args(action="console", all=True))
        assert options.debug is True

    def test_debug_off_without_flag_or_env(self):
        with patch("kvm_control.config._LOG_VERBOSE", False):
            options = resolve_options(_args(all=True))
        assert options.debug is False

    def test_overrides(self):
        options = resolve_options(_args(all=True, yaml="/tmp/hosts.yaml", pool="images", qemu=True))
        assert options.config_path == Path("/tmp/hosts.yaml")
        assert options.pool == "images"
        assert options.virt_type == "qemu"

    def test_defaults(self):
        with patch("kvm_control.config.DEFAULT_CONFIG_PATH", Path("/etc/kvm_hosts.yaml")):
            options = resolve_options(_args(all=True))
        assert options.config_path == Path("/etc/kvm_hosts.yaml")
        assert options.virt_type == "kvm"


class TestRequireWorkingSet:
    def test_requires_hosts_or_all(self):
        with pytest.raises(ControlError, match="Defined hosts: web-1, db-1"):
            require_working_set(Options(), ["web-1", "db-1"])

    def test_no_defined_hosts(self):
        with pytest.raises(ControlError, match="Defined hosts: <none>"):
            require_working_set(Options(), [])

    def test_named_hosts_pass(self):
        require_working_set(Options(hosts=("web-1",)), ["web-1"])

    def test_all_passes(self):
        require_working_set(Options(all_domains=True), [])


class TestEnvironmentDefaults:
    @pytest.fixture
    def environment(self, monkeypatch):
        monkeypatch.setenv("KVM_CONTROL_CONFIG", "/srv/hosts.yaml")
        monkeypatch.setenv("KVM_CONTROL_POOL", "images")
        monkeypatch.setenv("LOG_VERBOSE", "yes")
        importlib.reload(constants)
        importlib.reload(config)
        yield
        monkeypatch.undo()
        importlib.reload(constants)
        importlib.reload(config)

    def test_constants_read_environment(self, environment):
        assert constants.DEFAULT_CONFIG_PATH == Path("/srv/hosts.yaml")
        assert constants.DEFAULT_POOL == "images"
        assert constants._LOG_VERBOSE is True

    def test_options_fall_back_to_environment(self, environment):
        options = config.resolve_options(_args(all=True))
        assert options.config_path == Path("/srv/hosts.yaml")
        assert options.pool == "images"
        assert options.debug is True

    def test_flags_override_environment(self, environment):
        options = config.resolve_options(_args(all=True, yaml="/tmp/hosts.yaml", pool="fast"))
        assert options.config_path == Path("/tmp/hosts.yaml")
        assert options.pool == "fast"

    def test_unset_environment_uses_builtin_defaults(self, monkeypatch):
        for name in ("KVM_CONTROL_CONFIG", "KVM_CONTROL_POOL", "LOG_VERBOSE"):
            monkeypatch.delenv(name, raising=False)
        try:
            importlib.reload(constants)
            assert constants.DEFAULT_CONFIG_PATH == Path("/etc/kvm_hosts.yaml")
            assert constants.DEFAULT_POOL == "default"
            assert constants._LOG_VERBOSE is False
        finally:
            monkeypatch.undo()
            importlib.reload(constants)
