from modscope.ranges import Range, address_range, length_range, slave_range


def test_bounds_are_ordered():
    r = Range(10, 2)
    assert (r.start, r.end) == (2, 10)


def test_contains_inclusive():
    r = Range(1.5, 3.5)
    assert r.contains(1.5)
    assert r.contains(3.5)
    assert not r.contains(3.6)
    assert 2 in r
    assert 0 not in r


def test_address_range_depends_on_base():
    assert address_range(True) == Range(0, 65535)
    assert address_range(False) == Range(1, 65535)
    assert address_range() == address_range(False)


def test_length_and_slave_ranges():
    assert length_range() == Range(1, 125)
    assert slave_range() == Range(1, 255)
    assert not length_range().contains(126)
    assert not slave_range().contains(0)