"""
Command history with transactions and undo/redo.

CommandHistory is the mutation service used by the insertion engine: every
edit goes through it as a Command, commands dispatched between begin() and
commit() form one undo step, and rollback() reverts an open transaction.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from .commands import AddMeasureCommand, Command, DeleteElementCommand, InsertElementCommand
from .models import Element, Score


class MutationService(ABC):
    """
    Interface the insertion engine uses to change a score.

    Reads go through ``score``; writes go through the mutation methods so they
    can be undone and grouped into one transaction.
    """

    score: Score

    @abstractmethod
    def insert_element(
        self,
        track_index: int,
        measure_index: int,
        index: Optional[int],
        element: Element
    ) -> None:
        pass

    @abstractmethod
    def delete_element(self, track_index: int, measure_index: int, element_id: str) -> None:
        pass

    @abstractmethod
    def create_measure(self, track_index: int) -> None:
        pass

    @abstractmethod
    def begin(self) -> None:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass


class CommandHistory(MutationService):
    """
    In-memory mutation service over a Score.

    Transactions may nest; only the outermost commit records an undo step and
    a rollback at any depth reverts the whole open transaction.
    """

    def __init__(self, score: Score):
        """
        Initialize history.

        Args:
            score: Score to mutate
        """
        self.score = score
        self.logger = logging.getLogger(__name__)
        self._undo_stack: List[List[Command]] = []
        self._redo_stack: List[List[Command]] = []
        self._pending: List[Command] = []
        self._depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def dispatch(self, command: Command) -> None:
        """Execute a command and record it."""
        command.execute(self.score)
        self.logger.debug(f"Executed {type(command).__name__}")
        if self.in_transaction:
            self._pending.append(command)
        else:
            self._undo_stack.append([command])
            self._redo_stack.clear()

    def insert_element(self, track_index, measure_index, index, element):
        self.dispatch(InsertElementCommand(track_index, measure_index, element, index))

    def delete_element(self, track_index, measure_index, element_id):
        self.dispatch(DeleteElementCommand(track_index, measure_index, element_id))

    def create_measure(self, track_index):
        # Measures are added to every track so tracks stay the same length
        self.dispatch(AddMeasureCommand())

    def begin(self) -> None:
        self._depth += 1

    def commit(self) -> None:
        if not self.in_transaction:
            raise RuntimeError("commit() without begin()")
        self._depth -= 1
        if self._depth == 0 and self._pending:
            self._undo_stack.append(self._pending)
            self._redo_stack.clear()
            self.logger.debug(f"Committed transaction of {len(self._pending)} command(s)")
            self._pending = []

    def rollback(self) -> None:
        if not self.in_transaction:
            raise RuntimeError("rollback() without begin()")
        for command in reversed(self._pending):
            command.undo(self.score)
        self.logger.info(f"Rolled back {len(self._pending)} command(s)")
        self._pending = []
        self._depth = 0

    def undo(self) -> bool:
        """Revert the last committed step. Returns False if there is none."""
        if self.in_transaction or not self._undo_stack:
            return False
        step = self._undo_stack.pop()
        for command in reversed(step):
            command.undo(self.score)
        self._redo_stack.append(step)
        return True

    def redo(self) -> bool:
        """Re-apply the last undone step. Returns False if there is none."""
        if self.in_transaction or not self._redo_stack:
            return False
        step = self._redo_stack.pop()
        for command in step:
            command.execute(self.score)
        self._undo_stack.append(step)
        return True
