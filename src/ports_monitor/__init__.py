"""Inventory open ports with their owning process and stop those processes."""

from .models import FilterCriteria, PortRecord, StopOutcome, StopStrategy
from .port_inventory import enumerate_ports, filter_ports
from .process_terminator import ProcessTerminator, stop_process, stop_processes

__all__ = [
    "FilterCriteria",
    "PortRecord",
    "ProcessTerminator",
    "StopOutcome",
    "StopStrategy",
    "enumerate_ports",
    "filter_ports",
    "stop_process",
    "stop_processes",
]
