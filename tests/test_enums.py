import pytest

from modscope.enums import (
    AddressBase,
    ByteOrder,
    DataDisplayMode,
    DisplayMode,
    RegisterType,
    SimulationMode,
    load_setting,
    save_setting,
)


@pytest.mark.parametrize(
    "value",
    [AddressBase.BASE1, DisplayMode.TRAFFIC, DataDisplayMode.SWAPPED_DBL, ByteOrder.SWAPPED],
)
def test_round_trip(value):
    settings = {}
    save_setting(settings, value)
    assert load_setting(settings, type(value)) is value


def test_saved_under_type_key_as_int():
    settings = {}
    save_setting(settings, DataDisplayMode.ANSI)
    assert settings == {"DataDisplayMode": int(DataDisplayMode.ANSI)}


def test_missing_key_reads_first_member():
    assert load_setting({}, AddressBase) is AddressBase.BASE0
    assert load_setting({"ByteOrder": "garbage"}, ByteOrder) is ByteOrder.DIRECT


def test_string_value_is_parsed():
    assert load_setting({"DisplayMode": "1"}, DisplayMode) is DisplayMode.TRAFFIC


def test_unsupported_enum_rejected():
    with pytest.raises(TypeError):
        save_setting({}, SimulationMode.RANDOM)
    with pytest.raises(TypeError):
        load_setting({}, RegisterType)


def test_out_of_range_value_rejected():
    with pytest.raises(ValueError):
        load_setting({"AddressBase": 7}, AddressBase)