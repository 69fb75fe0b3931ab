import logging
from typing import Dict

from ytparty.client.signals import Signal

logger = logging.getLogger(__name__)


class UnknownComponentError(KeyError):
    pass


class ReadinessTracker:
    """
    Tracks named subsystems with different startup latencies and emits
    `ready` exactly once, when the last pending component becomes ready.
    """

    def __init__(self):
        self._components: Dict[str, bool] = {}
        self._fired = False
        self.component_added = Signal("componentAdded")
        self.ready = Signal("ready")

    @property
    def components(self) -> Dict[str, bool]:
        return dict(self._components)

    @property
    def is_ready(self) -> bool:
        return self._fired

    def is_component_ready(self, name: str) -> bool:
        return self._components.get(name, False)

    def add_component(self, name: str) -> None:
        if name in self._components:
            logger.warning(f'Tried to add component "{name}" twice!')
            return
        if self._fired:
            logger.warning(f'Component "{name}" added after readiness was reached; ignoring')
            return

        self._components[name] = False
        self._log_components()
        self.component_added.emit(name)

    def component_ready(self, name: str) -> None:
        if name not in self._components:
            raise UnknownComponentError(f'Component "{name}" does not exist!')

        if self._components[name]:
            return

        self._components[name] = True
        self._log_components()

        if not self._fired and all(self._components.values()):
            self._fired = True
            self.ready.emit()

    def _log_components(self) -> None:
        table = "\n".join(f"{'[x]' if ready else '[ ]'} {name}" for name, ready in self._components.items())
        logger.debug(f"Components:\n{table}")
