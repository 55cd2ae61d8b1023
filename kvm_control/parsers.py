"""Parsers for the whitespace-columned tables printed by virsh."""

from __future__ import annotations

from typing import Dict

from kvm_control.constants import DOMAIN_LIST_HEADER, NO_ID, VOLUME_LIST_HEADER
from kvm_control.models import DomainStatus


def parse_domain_list(output: str) -> Dict[str, DomainStatus]:
    """Parse ``virsh list --all`` output into a name -> status map.

    Rows are ``ID NAME STATE...``; the state may span several words
    (``shut off``). Stopped domains report ``-`` as their id, which is
    stored as no id at all.
    """
    domains: Dict[str, DomainStatus] = {}
    for line in output.splitlines():
        tokens = line.split()
        if len(tokens) < 3:
            continue
        domain_id, name = tokens[0], tokens[1]
        if domain_id == DOMAIN_LIST_HEADER:
            continue
        state = " ".join(tokens[2:])
        domains[name] = DomainStatus(state=state, id=None if domain_id == NO_ID else domain_id)
    return domains


def parse_volume_list(output: str) -> Dict[str, str]:
    """Parse ``virsh vol-list`` output into a name -> path map."""
    volumes: Dict[str, str] = {}
    for line in output.splitlines():
        tokens = line.split()
        if len(tokens) != 2:
            continue
        name, path = tokens
        if name == VOLUME_LIST_HEADER:
            continue
        volumes[name] = path
    return volumes
