import pytest

from plate_core.wells import ALL_WELLS, index_to_well, is_valid_well, normalize_well, well_to_index


def test_column_major_order():
    assert well_to_index("A1") == 0
    assert well_to_index("H1") == 7
    assert well_to_index("A2") == 8
    assert well_to_index("C4") == 26
    assert well_to_index("H12") == 95


def test_index_to_well():
    assert index_to_well(0) == "A1"
    assert index_to_well(10) == "C2"
    assert index_to_well(95) == "H12"


@pytest.mark.parametrize("index", [-1, 96, 200])
def test_index_out_of_range_is_none(index):
    assert index_to_well(index) is None


def test_round_trip_over_all_indices():
    for i in range(96):
        assert well_to_index(index_to_well(i)) == i


def test_round_trip_over_all_wells_case_insensitive():
    for well in ALL_WELLS:
        assert index_to_well(well_to_index(well.lower())) == well


@pytest.mark.parametrize("bad", ["", None, "I1", "A0", "A13", "Z99", "A", "AB", "1A", "A1x"])
def test_malformed_well_falls_back_to_a1(bad):
    assert well_to_index(bad) == 0
    assert not is_valid_well(bad)


def test_all_wells_canonical_order():
    assert len(ALL_WELLS) == 96
    assert ALL_WELLS[:9] == ["A1", "B1", "C1", "D1", "E1", "F1", "G1", "H1", "A2"]
    assert ALL_WELLS[-1] == "H12"


def test_normalize_well():
    assert normalize_well("c4") == "C4"
    assert normalize_well(" b12 ") == "B12"
    assert normalize_well("nope") == "A1"
