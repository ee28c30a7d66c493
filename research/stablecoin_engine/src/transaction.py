"""All-or-nothing application of one operation

Handlers stage every external effect and record write, run their checks, and
only then commit. Nothing staged touches a collaborator or a store before
commit. If an effect fails during commit, the effects already applied are
compensated in reverse order and the error propagates.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .state.config import Config, ConfigStore
from .state.position import Position, PositionLedger

logger = logging.getLogger(__name__)


@dataclass
class Effect:
    description: str
    apply: Callable[[], None]
    undo: Callable[[], None]


class Transaction:
    def __init__(self, label: str, positions: PositionLedger, configs: ConfigStore):
        self.label = label
        self._positions = positions
        self._configs = configs
        self._effects: List[Effect] = []
        self._position_writes: List[Position] = []
        self._config_write: Optional[Config] = None
        self._config_write_initial = False
        self.committed = False

    def stage(self, description: str, apply: Callable[[], None], undo: Callable[[], None]) -> None:
        logger.debug("[%s] staged %s", self.label, description)
        self._effects.append(Effect(description, apply, undo))

    def write_position(self, position: Position) -> None:
        self._position_writes.append(position)

    def write_config(self, config: Config, initial: bool = False) -> None:
        self._config_write = config
        self._config_write_initial = initial

    @property
    def effects(self) -> List[str]:
        return [effect.description for effect in self._effects]

    def commit(self) -> None:
        if self.committed:
            raise RuntimeError(f"transaction {self.label} already committed")

        applied: List[Effect] = []
        try:
            for effect in self._effects:
                effect.apply()
                applied.append(effect)
            if self._config_write is not None:
                if self._config_write_initial:
                    self._configs.initialize(self._config_write)
                else:
                    self._configs.write(self._config_write)
        except Exception:
            if applied:
                logger.warning("[%s] commit failed, compensating %d effect(s)", self.label, len(applied))
            for effect in reversed(applied):
                try:
                    effect.undo()
                except Exception:
                    logger.exception("[%s] could not undo %s", self.label, effect.description)
            raise

        for position in self._position_writes:
            self._positions.put(position)
        self.committed = True
        logger.debug("[%s] committed %d effect(s)", self.label, len(applied))

    def discard(self) -> None:
        logger.debug("[%s] discarded %d staged effect(s)", self.label, len(self._effects))
        self._effects.clear()
        self._position_writes.clear()
        self._config_write = None

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
        else:
            self.discard()
        return False
