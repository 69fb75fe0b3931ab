import logging
from typing import Callable, Optional

from ytparty.client.signals import Signal
from ytparty.models.state import State

logger = logging.getLogger(__name__)

StateDefiner = Callable[[], Optional[State]]


class StateManager:
    """
    Holds the last known local playback snapshot. Snapshots are frozen
    models, so readers always get a value nobody else can mutate.

    `state_changed` fires on every assignment and every `update_state()`,
    whether or not the value differs.
    """

    def __init__(self, definer: StateDefiner):
        self._definer = definer
        self._state: Optional[State] = None
        self.state_changed = Signal("stateChanged")

    @property
    def state(self) -> Optional[State]:
        return self._state

    @state.setter
    def state(self, value: Optional[State]) -> None:
        self._state = value
        self.state_changed.emit(value)

    def replace(self, value: Optional[State]) -> None:
        """Adopt a snapshot that came from elsewhere without announcing it."""
        self._state = value

    def update_state(self) -> Optional[State]:
        self.state = self._definer()
        return self._state
