"""Shared test fixtures for kvm-control."""

from __future__ import annotations

import textwrap

import pytest

from kvm_control import utils
from kvm_control.hypervisor import Hypervisor
from kvm_control.models import DomainSpec, NetworkSpec, Options, VolumeSpec

VIRSH_LIST = textwrap.dedent(
    """\
     Id    Name                           State
    ----------------------------------------------------
     408   vj884x_env_slave-15            running
     409   vj884x_env_slave-14            running
     410   vj884x_env_slave-13            running
     411   vj884x_env_slave-12            running
     -     ap943g_slave-02                shut off
     -     ap943g_slave-03                shut off
     -     ap943g_slave-04                shut off
     409   vj884x_env_slave-14            running
     410   vj884x_env_slave-13            running
     411   vj884x_env_slave-12            running
     412   vj884x_env_slave-11            running
    """
)

VIRSH_VOL_LIST = textwrap.dedent(
    """\
     Name                 Path
    ------------------------------------------------------------------------------
     lab5_admin-iso /var/lib/libvirt/images/lab5_admin-iso
     lab5_admin-system /var/lib/libvirt/images/lab5_admin-system
     lab5_slave-01-cinder /var/lib/libvirt/images/lab5_slave-01-cinder
     lab5_slave-01-swift /var/lib/libvirt/images/lab5_slave-01-swift
    """
)


@pytest.fixture(autouse=True)
def quiet_debug():
    """Keep DEBUG output off unless a test turns it on itself."""
    utils.set_verbose(False)
    yield
    utils.set_verbose(False)


@pytest.fixture
def virsh_list() -> str:
    return VIRSH_LIST


@pytest.fixture
def virsh_vol_list() -> str:
    return VIRSH_VOL_LIST


@pytest.fixture
def hypervisor() -> Hypervisor:
    return Hypervisor("kvm")


@pytest.fixture
def web_domain() -> DomainSpec:
    """A domain with one pool volume, one pre-pathed volume and one network."""
    return DomainSpec(
        name="web-1",
        ram="2048",
        cpu="4",
        volumes=(
            VolumeSpec(name="web-1_os", size="10G", serial="101"),
            VolumeSpec(name="web-1_data", size="20G", path="/srv/web-1_data", serial="102"),
        ),
        networks=(NetworkSpec(network="default"),),
    )


@pytest.fixture
def db_domain() -> DomainSpec:
    return DomainSpec(name="db-1", volumes=(VolumeSpec(name="db-1_os", size="10G", serial="201"),))


@pytest.fixture
def make_options():
    def _make(**kwargs) -> Options:
        kwargs.setdefault("all_domains", True)
        return Options(**kwargs)

    return _make
