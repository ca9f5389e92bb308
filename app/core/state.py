from typing import Optional

from app.core.config import load_timings
from app.services.draw_machine import DrawMachine

# The one draw machine of this process. Only touched from the event loop.
_MACHINE: Optional[DrawMachine] = None


def get_machine() -> DrawMachine:
    global _MACHINE
    if _MACHINE is None:
        _MACHINE = DrawMachine(timings=load_timings())
    return _MACHINE


def reset_machine(machine: Optional[DrawMachine] = None) -> None:
    """Cancel the active draw and replace the registry entry (``None`` rebuilds lazily)."""
    global _MACHINE
    if _MACHINE is not None:
        _MACHINE.cancel()
    _MACHINE = machine
