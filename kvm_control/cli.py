"""CLI entry points for kvm-control."""

from __future__ import annotations

import argparse
import code
from typing import List, Optional

from kvm_control.config import load_domain_settings, require_working_set, resolve_options
from kvm_control.constants import DEFAULT_CONFIG_PATH, DEFAULT_POOL
from kvm_control.exceptions import ControlError
from kvm_control.hypervisor import Hypervisor
from kvm_control.orchestrator import Orchestrator
from kvm_control.utils import log, set_verbose


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvm-control",
        usage="kvm-control [options] (domain ...)",
        description="Create, delete, start and stop the libvirt domains described in a YAML file",
    )
    actions = parser.add_mutually_exclusive_group()
    actions.add_argument(
        "-D", "--delete", dest="action", action="store_const", const="delete",
        help="Delete the created domains and volumes",
    )
    actions.add_argument(
        "-R", "--recreate", dest="action", action="store_const", const="recreate",
        help="Delete and create the domains and volumes",
    )
    actions.add_argument(
        "-s", "--stop", dest="action", action="store_const", const="stop", help="Stop all created domains"
    )
    actions.add_argument(
        "-r", "--start", dest="action", action="store_const", const="start", help="Start all created domains"
    )
    actions.add_argument(
        "-l", "--list", dest="action", action="store_const", const="list", help="List the domains and their states"
    )
    actions.add_argument(
        "-c", "--config", dest="action", action="store_const", const="config",
        help="Show the requested configuration of the domains and volumes",
    )
    actions.add_argument(
        "-C", "--console", dest="action", action="store_const", const="console", help="Run the debug console"
    )
    parser.add_argument("-a", "--all", action="store_true", help="Process all domains")
    parser.add_argument("-d", "--debug", action="store_true", help="Show debug messages")
    parser.add_argument(
        "-y", "--yaml", metavar="FILE", default=None, help=f"Settings YAML file (default: {DEFAULT_CONFIG_PATH})"
    )
    parser.add_argument("-q", "--qemu", action="store_true", help="Use QEMU instead of KVM")
    parser.add_argument(
        "-p", "--pool", metavar="POOL", default=None, help=f"The name of the libvirt storage pool (default: {DEFAULT_POOL})"
    )
    parser.add_argument("hosts", nargs="*", metavar="domain", help="Names of the domains to work with")
    return parser


def run_console(orchestrator: Orchestrator) -> None:
    """Drop into an interactive Python shell with the run objects in scope."""
    namespace = {
        "orchestrator": orchestrator,
        "hypervisor": orchestrator.hypervisor,
        "options": orchestrator.options,
        "domains": orchestrator.domains,
    }
    code.interact(banner="kvm-control debug console", local=namespace, exitmsg="")


def main(argv: Optional[List[str]] = None) -> int:
    options = resolve_options(build_parser().parse_args(argv))
    set_verbose(options.debug)
    log("DEBUG", f"Options: {options}")

    try:
        settings = load_domain_settings(options.config_path)
        require_working_set(options, [domain.name for domain in settings])
        orchestrator = Orchestrator(options, settings, Hypervisor(options.virt_type))
        if options.action == "console":
            run_console(orchestrator)
        else:
            orchestrator.run()
        return 0
    except ControlError as exc:
        log("ERROR", str(exc))
        return 1
    except Exception as exc:
        log("ERROR", f"Unexpected error: {exc}")
        import traceback

        traceback.print_exc()
        return 1
