"""Session context: the active class partition and storage for one signed-in session."""
from __future__ import annotations
from typing import Iterable

from lessonplanner.core.config import CLASS_NAMES
from lessonplanner.domain.planning.rules import validate_class_name
from lessonplanner.sync.storage import StoragePort


class SessionContext:
    """
    Holds what used to be ambient global state: which class is active and where
    its data lives. The generation counter moves whenever the active partition
    changes or the session ends, so results of requests started before that
    point can be recognised as stale.
    """

    def __init__(self, class_name: str, storage: StoragePort, class_names: Iterable[str] = CLASS_NAMES):
        self.class_names = tuple(class_names)
        self._class_name = validate_class_name(class_name, self.class_names).unwrap()
        self.storage = storage
        self._generation = 0
        self._closed = False

    @property
    def class_name(self) -> str:
        return self._class_name

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    def switch_class(self, class_name: str) -> None:
        validate_class_name(class_name, self.class_names).unwrap()
        if class_name == self._class_name:
            return
        self._class_name = class_name
        self._generation += 1

    def close(self) -> None:
        self._closed = True
        self._generation += 1
