"""Custom exceptions for kvm-control."""


class ControlError(RuntimeError):
    """Raised on unrecoverable configuration or hypervisor errors."""
