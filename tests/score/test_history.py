"""
Tests for undoable commands and CommandHistory.
"""

import pytest
from src.score import CommandHistory, Cursor, Element, Note, Score, SelectionStore, TupletRatio
from src.score.commands import (
    AddMeasureCommand,
    AddNoteCommand,
    DeleteElementCommand,
    InsertElementCommand,
    SetTieCommand,
    SetTupletCommand,
)


@pytest.fixture
def score():
    """Two-track score whose first measure holds C, D, E."""
    score = Score.empty(measures=2, tracks=2)
    score.tracks[0].measures[0].elements = [
        Element.chord('C4', 'quarter', id='C'),
        Element.chord('D4', 'quarter', id='D'),
        Element.chord('E4', 'quarter', id='E'),
    ]
    return score


def ids(score, track=0, measure=0):
    return [e.id for e in score.tracks[track].measures[measure].elements]


class TestCommands:
    """Test individual commands."""

    def test_insert_at_index(self, score):
        """Test inserting at an index and undoing."""
        command = InsertElementCommand(0, 0, Element.rest('quarter', id='R'), 1)
        command.execute(score)
        assert ids(score) == ['C', 'R', 'D', 'E']
        command.undo(score)
        assert ids(score) == ['C', 'D', 'E']

    def test_insert_without_index_appends(self, score):
        """Test inserting without an index appends."""
        InsertElementCommand(0, 0, Element.rest('quarter', id='R')).execute(score)
        assert ids(score) == ['C', 'D', 'E', 'R']

    def test_insert_copies_element(self, score):
        """Test the inserted element is a copy."""
        element = Element.chord('G4', 'quarter', id='G')
        InsertElementCommand(0, 0, element, 0).execute(score)
        element.notes[0].tied = True
        assert score.tracks[0].measures[0].elements[0].notes[0].tied is False

    def test_insert_missing_measure(self, score):
        """Test inserting into a missing measure."""
        with pytest.raises(IndexError, match="No measure 5"):
            InsertElementCommand(0, 5, Element.rest('quarter')).execute(score)

    def test_delete_and_undo_restores_position(self, score):
        """Test undoing a delete restores the position."""
        command = DeleteElementCommand(0, 0, 'D')
        command.execute(score)
        assert ids(score) == ['C', 'E']
        command.undo(score)
        assert ids(score) == ['C', 'D', 'E']

    def test_delete_missing_element(self, score):
        """Test deleting a missing element."""
        with pytest.raises(KeyError):
            DeleteElementCommand(0, 0, 'nope').execute(score)

    def test_add_measure_to_every_track(self, score):
        """Test a measure is added to every track."""
        command = AddMeasureCommand()
        command.execute(score)
        assert [len(t.measures) for t in score.tracks] == [3, 3]
        command.undo(score)
        assert [len(t.measures) for t in score.tracks] == [2, 2]


class TestNoteAndTupletCommands:
    """Test note, tie and tuplet commands."""

    def test_add_note_and_undo(self, score):
        """Test adding a note to a chord and undoing."""
        command = AddNoteCommand(0, 0, 'C', Note(pitch='G4'))
        command.execute(score)
        chord = score.tracks[0].measures[0].elements[0]
        assert chord.pitches == ['C4', 'G4']
        command.undo(score)
        assert chord.pitches == ['C4']

    def test_add_note_to_rest(self, score):
        """Test a note cannot be added to a rest."""
        score.tracks[0].measures[1].elements = [Element.rest('quarter', id='R')]
        with pytest.raises(ValueError, match="to a rest"):
            AddNoteCommand(0, 1, 'R', Note(pitch='G4')).execute(score)

    def test_add_note_missing_element(self, score):
        """Test adding a note to a missing element."""
        with pytest.raises(KeyError):
            AddNoteCommand(0, 0, 'nope', Note(pitch='G4')).execute(score)

    def test_set_tie_and_undo(self, score):
        """Test setting a tie and undoing restores the previous flag."""
        note = score.tracks[0].measures[0].elements[1].notes[0]
        command = SetTieCommand(0, 0, 'D', note.id, True)
        command.execute(score)
        assert note.tied is True
        command.undo(score)
        assert note.tied is False

    def test_set_tie_missing_note(self, score):
        """Test tying a missing note."""
        with pytest.raises(KeyError, match="Note nope not found"):
            SetTieCommand(0, 0, 'D', 'nope', True).execute(score)

    def test_set_tuplet_and_undo(self, score):
        """Test grouping elements into a tuplet and undoing."""
        command = SetTupletCommand(0, 0, ['C', 'D'], TupletRatio(2, 3), 'tup_1')
        command.execute(score)
        elements = score.tracks[0].measures[0].elements
        assert [e.tuplet_group for e in elements] == ['tup_1', 'tup_1', None]
        assert elements[0].quants == 24
        command.undo(score)
        assert all(e.tuplet is None and e.tuplet_group is None for e in elements)

    def test_clear_tuplet_and_undo(self, score):
        """Test clearing a tuplet and undoing restores the group."""
        SetTupletCommand(0, 0, ['C', 'D'], TupletRatio(2, 3), 'tup_1').execute(score)
        command = SetTupletCommand(0, 0, ['C', 'D'], None)
        command.execute(score)
        elements = score.tracks[0].measures[0].elements
        assert elements[0].tuplet is None
        command.undo(score)
        assert elements[1].tuplet == TupletRatio(2, 3)
        assert elements[1].tuplet_group == 'tup_1'


class TestCommandHistory:
    """Test transactions and undo/redo."""

    def test_single_command_is_one_step(self, score):
        """Test a command outside a transaction is one undo step."""
        history = CommandHistory(score)
        history.delete_element(0, 0, 'C')
        assert history.can_undo
        assert history.undo()
        assert ids(score) == ['C', 'D', 'E']
        assert history.redo()
        assert ids(score) == ['D', 'E']

    def test_transaction_is_one_step(self, score):
        """Test a transaction is one undo step."""
        history = CommandHistory(score)
        history.begin()
        history.delete_element(0, 0, 'D')
        history.insert_element(0, 0, 1, Element.rest('half', id='R'))
        history.create_measure(0)
        history.commit()

        assert ids(score) == ['C', 'R', 'E']
        assert len(score.tracks[0].measures) == 3

        assert history.undo()
        assert ids(score) == ['C', 'D', 'E']
        assert len(score.tracks[0].measures) == 2
        assert not history.can_undo

        assert history.redo()
        assert ids(score) == ['C', 'R', 'E']
        assert len(score.tracks[1].measures) == 3

    def test_rollback_reverts_open_transaction(self, score):
        """Test rollback reverts the open transaction."""
        history = CommandHistory(score)
        history.begin()
        history.delete_element(0, 0, 'C')
        history.delete_element(0, 0, 'E')
        history.rollback()

        assert ids(score) == ['C', 'D', 'E']
        assert not history.in_transaction
        assert not history.can_undo

    def test_nested_transactions_commit_once(self, score):
        """Test nested transactions commit once."""
        history = CommandHistory(score)
        history.begin()
        history.delete_element(0, 0, 'C')
        history.begin()
        history.delete_element(0, 0, 'D')
        history.commit()
        assert history.in_transaction
        history.commit()

        assert history.undo()
        assert ids(score) == ['C', 'D', 'E']

    def test_no_undo_inside_transaction(self, score):
        """Test undo is refused inside a transaction."""
        history = CommandHistory(score)
        history.delete_element(0, 0, 'C')
        history.begin()
        assert history.undo() is False
        history.rollback()

    def test_commit_without_begin(self, score):
        """Test commit without begin."""
        with pytest.raises(RuntimeError):
            CommandHistory(score).commit()

    def test_rollback_without_begin(self, score):
        """Test rollback without begin."""
        with pytest.raises(RuntimeError):
            CommandHistory(score).rollback()

    def test_new_command_clears_redo(self, score):
        """Test a new command clears the redo stack."""
        history = CommandHistory(score)
        history.delete_element(0, 0, 'C')
        history.undo()
        history.delete_element(0, 0, 'E')
        assert not history.can_redo

    def test_empty_history(self, score):
        """Test undo and redo on an empty history."""
        history = CommandHistory(score)
        assert history.undo() is False
        assert history.redo() is False


class TestSelectionStore:
    """Test the cursor store."""

    def test_default_cursor(self):
        """Test the default cursor appends."""
        cursor = SelectionStore().current()
        assert cursor == Cursor(0, None, None)
        assert cursor.is_append

    def test_set_records_history(self):
        """Test selections are recorded."""
        store = SelectionStore()
        store.select(0, 1, 'x')
        store.select(0, 2)
        assert store.current() == Cursor(0, 2, None)
        assert store.history == [Cursor(0, 1, 'x'), Cursor(0, 2, None)]

    def test_select_note(self):
        """Test a note selection keeps the element."""
        store = SelectionStore()
        store.select(0, 1, 'x', 'n1')
        assert store.current() == Cursor(0, 1, 'x', 'n1')
        assert not store.current().is_append
