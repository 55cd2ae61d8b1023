"""Module entrypoint: ``python -m kvm_control``."""

from kvm_control.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
