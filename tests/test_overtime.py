from datetime import date
from itertools import permutations

from labour_logger.models import OvertimeSplit
from labour_logger.overtime import allocate_overtime


def test_second_entry_of_the_day_spills_into_overtime(make_entry):
    first = make_entry("a", start="08:00", hours=5)
    second = make_entry("b", start="13:00", hours=5)

    result = allocate_overtime([first, second], threshold=8)

    assert result == {"a": OvertimeSplit(base=5, ot=0), "b": OvertimeSplit(base=3, ot=2)}


def test_start_time_not_input_order_decides_what_is_base(make_entry):
    late = make_entry("late", start="14:00", hours=4)
    early = make_entry("early", start="06:00", hours=6)

    result = allocate_overtime([late, early], threshold=8)

    assert result["early"] == OvertimeSplit(base=6, ot=0)
    assert result["late"] == OvertimeSplit(base=2, ot=2)


def test_groups_are_independent_per_employee_and_day(make_entry):
    entries = [
        make_entry("monday", hours=9),
        make_entry("tuesday", day=date(2024, 1, 9), hours=6),
        make_entry("other", employee_id="e2", hours=6),
    ]

    result = allocate_overtime(entries, threshold=8)

    assert result["monday"] == OvertimeSplit(base=8, ot=1)
    assert result["tuesday"] == OvertimeSplit(base=6, ot=0)
    assert result["other"] == OvertimeSplit(base=6, ot=0)


def test_allocation_ignores_input_permutation(make_entry):
    entries = [
        make_entry("a", start="07:00", hours=3.5),
        make_entry("b", start="11:00", hours=4.25),
        make_entry("c", start="16:00", hours=2.75),
        make_entry("d", employee_id="e2", start="09:00", hours=10),
    ]
    expected = allocate_overtime(entries, threshold=8)

    for ordering in permutations(entries):
        assert allocate_overtime(list(ordering), threshold=8) == expected


def test_group_sums_are_preserved_and_base_capped(make_entry):
    entries = [
        make_entry("a", start="07:00", hours=3.5),
        make_entry("b", start="11:00", hours=4.25),
        make_entry("c", start="16:00", hours=2.75),
    ]

    result = allocate_overtime(entries, threshold=8)

    base = sum(split.base for split in result.values())
    ot = sum(split.ot for split in result.values())
    assert base + ot == 10.5
    assert base == 8
    assert result["c"] == OvertimeSplit(base=0.25, ot=2.5)


def test_zero_threshold_makes_everything_overtime(make_entry):
    result = allocate_overtime([make_entry("a", hours=4)], threshold=0)

    assert result["a"] == OvertimeSplit(base=0, ot=4)


def test_result_covers_exactly_the_input(make_entry):
    assert allocate_overtime([], threshold=8) == {}
    assert set(allocate_overtime([make_entry("x"), make_entry("y")], threshold=8)) == {"x", "y"}


def test_context_entries_count_toward_the_day_but_are_not_reported(make_entry):
    visible = make_entry("visible", project_id="p2", start="13:00", hours=5)
    hidden = make_entry("hidden", start="08:00", hours=5)
    other_day = make_entry("other-day", day=date(2024, 1, 9), hours=10)

    alone = allocate_overtime([visible], threshold=8)
    with_history = allocate_overtime([visible], threshold=8, context=[visible, hidden, other_day])

    assert alone == {"visible": OvertimeSplit(base=5, ot=0)}
    assert with_history == {"visible": OvertimeSplit(base=3, ot=2)}
