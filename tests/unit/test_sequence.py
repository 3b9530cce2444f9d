import pytest

from c4model.sequence import ParallelSequenceCounter, SequenceCounter, SequenceError, SequenceNumber


def test_counter_without_parent():
    counter = SequenceCounter()
    assert counter.as_string() == "0"
    counter.increment()
    counter.increment()
    assert str(counter) == "2"


def test_counter_with_parents():
    parent = SequenceCounter()
    parent.increment()
    child = SequenceCounter(parent)
    child.increment()
    grandchild = SequenceCounter(child)
    grandchild.increment()
    grandchild.increment()

    assert child.as_string() == "1.1"
    assert grandchild.as_string() == "1.1.2"


def test_parallel_counter_numbers_as_a_sibling_of_its_parent():
    parent = SequenceCounter()
    parent.increment()
    child = SequenceCounter(parent)
    child.increment()

    parallel = ParallelSequenceCounter(child)
    assert parallel.sequence == 1
    parallel.increment()
    assert parallel.as_string() == "1.2"


def test_get_next_increments():
    seq = SequenceNumber()
    assert seq.get_next() == "1"
    assert seq.get_next() == "2"


def test_child_sequence():
    seq = SequenceNumber()
    assert seq.get_next() == "1"
    seq.start_child_sequence()
    assert seq.get_next() == "1.1"
    assert seq.get_next() == "1.2"
    seq.end_child_sequence()
    assert seq.get_next() == "2"


def test_parallel_sequences_share_their_starting_point():
    seq = SequenceNumber()
    assert seq.get_next() == "1"
    seq.start_parallel_sequence()
    assert seq.get_next() == "2"
    seq.end_parallel_sequence()
    seq.start_parallel_sequence()
    assert seq.get_next() == "2"
    seq.end_parallel_sequence()
    assert seq.get_next() == "2"


def test_parallel_inside_child_sequence():
    seq = SequenceNumber()
    seq.get_next()
    seq.start_child_sequence()
    assert seq.get_next() == "1.1"
    seq.start_parallel_sequence()
    assert seq.in_parallel
    assert seq.get_next() == "1.2"
    seq.end_parallel_sequence()
    assert not seq.in_parallel
    seq.end_child_sequence()
    assert seq.get_next() == "2"


def test_misuse_raises():
    seq = SequenceNumber()
    with pytest.raises(SequenceError):
        seq.end_parallel_sequence()
    with pytest.raises(SequenceError):
        seq.end_child_sequence()

    seq.start_parallel_sequence()
    with pytest.raises(SequenceError):
        seq.start_parallel_sequence()
    with pytest.raises(SequenceError):
        seq.end_child_sequence()

    seq.start_child_sequence()
    with pytest.raises(SequenceError, match="already in progress"):
        seq.start_parallel_sequence()
