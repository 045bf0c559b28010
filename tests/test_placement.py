import pytest

from plate_core.placement import (
    NO_SPACE,
    OCCUPIED,
    OVERLAP,
    first_fit,
    is_valid_placement,
    occupied_slots,
    placement_report,
    resolve_placements,
    validate_and_correct,
)


def test_occupied_slots_only_counts_preceding_files(make_file):
    files = [
        make_file("a", rows=3, start_well="A1"),
        make_file("b", rows=2, start_well="A2"),
        make_file("c", rows=4, start_well="A3"),
    ]
    assert occupied_slots(files, 0, 0) == set()
    assert occupied_slots(files, 1, 0) == {0, 1, 2}
    assert occupied_slots(files, 2, 0) == {0, 1, 2, 8, 9}


def test_empty_file_occupies_nothing(make_file):
    files = [make_file("empty", rows=0), make_file("b", rows=2)]
    assert occupied_slots(files, 1, 0) == set()


def test_is_valid_placement():
    assert is_valid_placement(set(), 0, 96)
    assert not is_valid_placement(set(), 1, 96)
    assert not is_valid_placement({5}, 0, 10)
    assert is_valid_placement({5}, 6, 10)


def test_first_fit_skips_past_collisions():
    occupied = set(range(0, 10)) | {15}
    assert first_fit(occupied, 5) == "C2"  # index 10
    assert first_fit(occupied, 6) == "A3"  # index 16


def test_first_fit_no_window():
    assert first_fit(set(range(0, 90)), 10) is None
    assert first_fit(set(range(0, 90)), 6) == "C12"


def test_first_fit_full_plate_on_empty_grid():
    assert first_fit(set(), 96) == "A1"


def test_two_files_requesting_a1(make_file):
    files = [make_file("one", rows=10), make_file("two", rows=5)]
    resolved = resolve_placements(files, 0)
    assert [f.start_well for f in resolved] == ["A1", "C2"]


def test_resolve_does_not_mutate_input(make_file):
    files = [make_file("one", rows=10), make_file("two", rows=5)]
    resolve_placements(files, 0)
    assert files[1].start_well == "A1"


def test_large_first_file_leaves_room_for_small_second(make_file):
    files = [make_file("big", rows=90), make_file("small", rows=6)]
    resolved = resolve_placements(files, 0)
    assert resolved[1].start_well == "C12"


def test_unplaceable_file_keeps_its_start_well(make_file):
    files = [make_file("big", rows=90), make_file("second", rows=10, start_well="B1")]
    resolved = resolve_placements(files, 0)
    assert resolved[1].start_well == "B1"

    report = placement_report(resolved, 0)
    assert report[1].placed is False
    assert report[1].disabled is True


def test_boundary_violation_is_corrected(make_file):
    files = [make_file("tail", rows=10, start_well="H12")]
    resolved = resolve_placements(files, 0)
    assert resolved[0].start_well == "A1"


def test_valid_request_is_kept(make_file):
    files = [make_file("one", rows=10), make_file("two", rows=5, start_well="D6")]
    assert resolve_placements(files, 0)[1].start_well == "D6"


def test_validate_and_correct_mutates_in_place(make_file):
    files = [make_file("one", rows=10), make_file("two", rows=5)]
    occupied = validate_and_correct(files, 1, 0)
    assert occupied == set(range(10))
    assert files[1].start_well == "C2"


def test_resolution_is_idempotent(make_file):
    files = [make_file("a", rows=30), make_file("b", rows=20), make_file("c", rows=40)]
    once = resolve_placements(files, 0)
    twice = resolve_placements(once, 0)
    assert [f.start_well for f in once] == [f.start_well for f in twice]


def test_removing_first_file_changes_later_placement(make_file):
    first = make_file("first", rows=10)
    second = make_file("second", rows=5)
    before = resolve_placements([first, second], 0)
    assert before[1].start_well == "C2"

    # The stored, corrected well stays valid once the first file is gone
    after = resolve_placements([before[1]], 0)
    assert after[0].start_well == "C2"

    # A fresh request for A1 is honoured when nothing precedes it
    after = resolve_placements([second], 0)
    assert after[0].start_well == "A1"


def test_reordering_changes_outcome(make_file):
    a = make_file("a", rows=10)
    b = make_file("b", rows=5)
    assert [f.start_well for f in resolve_placements([a, b], 0)] == ["A1", "C2"]
    assert [f.start_well for f in resolve_placements([b, a], 0)] == ["A1", "F1"]


def test_well_option_reasons(make_file):
    files = [make_file("a", rows=4, start_well="A2"), make_file("b", rows=4)]
    resolved = resolve_placements(files, 0)
    options = {o.well: o for o in placement_report(resolved, 0)[1].well_options}

    assert options["A1"].enabled
    assert options["F1"].reason == OVERLAP  # 5..8 touches slot 8
    assert options["A2"].reason == OCCUPIED
    assert options["E12"].enabled  # 92..95
    assert options["F12"].reason == NO_SPACE


def test_file_without_rows_is_disabled(make_file):
    report = placement_report([make_file("empty", rows=0)], 0)
    assert report[0].disabled is True
    assert report[0].placed is False
    assert report[0].length == 0


@pytest.mark.parametrize("rows, length", [(0, 0), (50, 50), (96, 96), (150, 96)])
def test_capped_length(make_file, rows, length):
    assert make_file(rows=rows).capped_length(0) == length
