from __future__ import annotations

from typing import Callable, Dict, Type

from .base import Transport
from .serial_port import SerialPort


class TransportDriverRegistry:
    """
    Maps driver keys -> concrete Transport classes.

    Instances are created unopened; the client opens one per probed port.
    """

    def __init__(self, drivers: Dict[str, Type[Transport]]):
        # normalize keys to be case-insensitive
        self._drivers: Dict[str, Type[Transport]] = {k.lower(): v for k, v in drivers.items()}

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls(drivers={"serial": SerialPort})

    def drivers(self) -> list[str]:
        return sorted(self._drivers.keys())

    def has(self, driver: str) -> bool:
        return driver.lower() in self._drivers

    def get_class(self, driver: str) -> Type[Transport]:
        key = driver.lower()
        if key not in self._drivers:
            raise KeyError(f"Transport driver '{driver}' not registered")
        return self._drivers[key]

    def create(self, driver: str, **params) -> Transport:
        """Instantiate an (unopened) transport by driver key."""
        transport_cls = self.get_class(driver)
        return transport_cls(**params)

    def factory(self, driver: str, **params) -> Callable[[], Transport]:
        """Return a zero-argument factory producing fresh transports for `driver`."""
        transport_cls = self.get_class(driver)
        return lambda: transport_cls(**params)
