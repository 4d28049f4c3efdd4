"""Terminal rendering of size reports, manifests and ledger history."""

from swapforge.monitor.renderer import DeployRenderer

__all__ = ["DeployRenderer"]
