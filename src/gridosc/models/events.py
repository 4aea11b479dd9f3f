"""Events produced by the daemon and by grid devices."""

from dataclasses import dataclass

from .enums import KeyState


@dataclass(frozen=True)
class DeviceDescriptor:
    """A device add or remove notification from serialosc."""
    id: str
    type: str
    port: int
    removed: bool = False  # True only for /serialosc/remove


@dataclass(frozen=True)
class ButtonEvent:
    """One key transition on a grid."""
    x: int
    y: int
    state: int  # 1 for down, 0 for up

    @property
    def pressed(self) -> bool:
        return self.state == KeyState.PRESSED
