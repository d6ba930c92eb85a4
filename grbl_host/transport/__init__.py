from .base import Transport
from .discovery import describe_ports, filter_candidates, list_serial_ports
from .registry import TransportDriverRegistry
from .serial_port import SerialPort

__all__ = [
    "Transport",
    "SerialPort",
    "TransportDriverRegistry",
    "list_serial_ports", "describe_ports", "filter_candidates",
]
