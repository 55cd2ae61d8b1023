"""kvm-control package."""

__all__ = [
    "cli",
    "config",
    "constants",
    "exceptions",
    "hypervisor",
    "models",
    "orchestrator",
    "parsers",
    "utils",
]
