import pytest

from driverbox.cache import CoreCache
from driverbox.config import Config, Device, DeviceModel
from driverbox.contracts import DeviceData, EncodeMode, PointData
from driverbox.errors import (
    DeviceNotFoundError,
    DriverError,
    PointNotFoundError,
    ProtocolDataFormatError,
)
from driverbox.modbus_codec import (
    ModbusAdapter,
    PointRawValue,
    PointTargetValue,
    PrimaryTable,
    RawData,
    RegisterValue,
    bool_list_to_uint16,
    cast_starting_address,
    get_extend_props,
    slice_to_point_raw_values,
    uint16_list_to_bool,
)

POINTS = [
    {"name": "level", "valueType": "int", "readWrite": "RW", "primaryTable": "HOLDING_REGISTER",
     "startAddress": 0, "quantity": 1, "rawType": "Uint16"},
    {"name": "offset", "valueType": "int", "readWrite": "RW", "primaryTable": "HOLDING_REGISTER",
     "startAddress": 1, "quantity": 1, "rawType": "Int16"},
    {"name": "power", "valueType": "float", "readWrite": "RW", "startAddress": "40003",
     "quantity": 2, "rawType": "Float32", "wordSwap": True},
    {"name": "switch", "valueType": "int", "readWrite": "RW", "startAddress": "00001",
     "quantity": 1},
]


@pytest.fixture
def cache():
    config = Config(
        device_models=[
            DeviceModel(
                name="meter",
                model_id="meter-model",
                description="test meter",
                device_points=[dict(p) for p in POINTS],
                devices=[
                    Device(
                        name="meter_1",
                        description="first meter",
                        connection_key="line1",
                        protocol={"unitID": "3", "maxQuantity": "10"},
                    )
                ],
            )
        ],
        connections={"line1": {}},
        protocol_name="modbus",
    )
    return CoreCache({"modbus_meter": config})


@pytest.mark.parametrize(
    "text, table",
    [
        ("00001", PrimaryTable.COIL),
        ("10001", PrimaryTable.DISCRETE_INPUT),
        ("30001", PrimaryTable.INPUT_REGISTER),
        ("40001", PrimaryTable.HOLDING_REGISTER),
    ],
)
def test_cast_starting_address_modbus_notation(text, table):
    assert cast_starting_address(text) == (0, table)


def test_cast_starting_address_hex_and_plain():
    assert cast_starting_address("0x1A") == (0x1A, None)
    assert cast_starting_address(7) == (7, None)
    assert cast_starting_address("123") == (123, None)


def test_cast_starting_address_five_digits_outside_tables():
    assert cast_starting_address("50001") == (0, None)


@pytest.mark.parametrize("bad", ["0xZZ", -1, "abc"])
def test_cast_starting_address_invalid(bad):
    with pytest.raises(DriverError):
        cast_starting_address(bad)


def test_get_extend_props_from_modbus_notation(cache):
    ext = get_extend_props(cache, "meter_1", "power")
    assert ext.start_address == 2
    assert ext.register_type == "HOLDING_REGISTER"
    assert ext.quantity == 2
    assert ext.raw_type == "Float32"
    assert ext.word_swap is True
    assert ext.byte_swap is False


def test_get_extend_props_table_from_address(cache):
    ext = get_extend_props(cache, "meter_1", "switch")
    assert ext.register_type == PrimaryTable.COIL.value
    assert ext.start_address == 0


def test_get_extend_props_unknown_point(cache):
    with pytest.raises(PointNotFoundError):
        get_extend_props(cache, "meter_1", "missing")


@pytest.mark.parametrize(
    "raw_type, value, count",
    [
        ("Uint16", 4660, 1),
        ("Int16", -2, 1),
        ("Uint32", 305419896, 2),
        ("Int32", -100000, 2),
        ("Uint64", 2**40 + 5, 4),
        ("Int64", -(2**40), 4),
        ("Float32", 1.5, 2),
        ("Float64", 3.25, 4),
        ("String", "ABCD", 2),
    ],
)
@pytest.mark.parametrize("word_swap", [False, True])
def test_encode_decode_round_trip(raw_type, value, count, word_swap):
    regs = PointTargetValue("p", value).encode_raw_value("HOLDING_REGISTER", raw_type, False, word_swap)
    assert len(regs) == count
    prv = PointRawValue("p")
    assert prv.decode([r.value for r in regs], "HOLDING_REGISTER", raw_type, False, word_swap) == value
    assert prv.value == value


def test_word_swap_reverses_register_order():
    normal = PointTargetValue("p", 305419896).encode_raw_value("HOLDING_REGISTER", "Uint32", False, False)
    swapped = PointTargetValue("p", 305419896).encode_raw_value("HOLDING_REGISTER", "Uint32", False, True)
    assert swapped == list(reversed(normal))


def test_byte_swap_reverses_bytes_of_uint16():
    regs = PointTargetValue("p", 0x1234).encode_raw_value("HOLDING_REGISTER", "Uint16", True, False)
    assert regs[0].value.to_bytes(2, "big") == (0x1234).to_bytes(2, "little")


def test_encode_coil():
    assert PointTargetValue("p", True).encode_raw_value("coil", "", False, False) == [RegisterValue(1)]
    assert PointTargetValue("p", 0).encode_raw_value("COIL", "", False, False) == [RegisterValue(0)]


def test_encode_negative_uint16_becomes_zero():
    regs = PointTargetValue("p", -5).encode_raw_value("HOLDING_REGISTER", "Uint16", False, False)
    assert regs == [RegisterValue(0)]


def test_encode_string_number_with_zero_decimals():
    regs = PointTargetValue("p", "12.0").encode_raw_value("HOLDING_REGISTER", "Uint16", False, False)
    assert regs == [RegisterValue(12)]


def test_encode_unknown_raw_type_leaves_values_empty():
    assert PointTargetValue("p", 1).encode_raw_value("HOLDING_REGISTER", "Bool", False, False) == []


def test_encode_odd_length_string_raises():
    with pytest.raises(DriverError):
        PointTargetValue("p", "abc").encode_raw_value("HOLDING_REGISTER", "String", False, False)


def test_decode_coils_and_discrete_inputs():
    assert PointRawValue("c").decode([1], "COIL", "", False, False) is True
    assert PointRawValue("c").decode([0], "COIL", "", False, False) is False
    assert PointRawValue("c").decode([2], "DISCRETE_INPUT", "", False, False) is False


def test_decode_coil_wrong_length():
    with pytest.raises(DriverError, match="illegal length c"):
        PointRawValue("c").decode([1, 0], "COIL", "", False, False)


def test_decode_uint32_wrong_length():
    with pytest.raises(DriverError, match="illegal length"):
        PointRawValue("p").decode([1], "HOLDING_REGISTER", "Uint32", False, False)


def test_decode_unknown_register_type():
    with pytest.raises(DriverError, match="unknown register type"):
        PointRawValue("p").decode([1], "SOMETHING", "Uint16", False, False)


def test_decode_unknown_raw_type_gives_none():
    prv = PointRawValue("p")
    assert prv.decode([1, 2], "INPUT_REGISTER", "Bool", False, False) is None
    assert prv.value is None


def test_bool_uint16_helpers():
    assert bool_list_to_uint16([True, False, True]) == [1, 0, 1]
    assert uint16_list_to_bool([1, 0, 2]) == [True, False, False]
    assert bool_list_to_uint16(None) == []
    assert uint16_list_to_bool(None) == []
    flags = [False, True, True, False]
    assert uint16_list_to_bool(bool_list_to_uint16(flags)) == flags


def test_slice_to_point_raw_values(cache):
    offset_regs = PointTargetValue("offset", -1).encode_raw_value("HOLDING_REGISTER", "Int16", False, False)
    raw = [7] + [r.value for r in offset_regs]
    result = slice_to_point_raw_values(cache, raw, 0, "meter_1", ["level", "offset"])
    assert [p.name for p in result] == ["level", "offset"]
    assert [p.value for p in result] == [7, -1]
    assert [p.raw_values for p in result] == [[7], [offset_regs[0].value]]


def test_slice_to_point_raw_values_out_of_range(cache):
    with pytest.raises(DriverError):
        slice_to_point_raw_values(cache, [7], 0, "meter_1", ["level", "offset"])


def test_adapter_encode_read(cache):
    td = ModbusAdapter(cache).encode("meter_1", EncodeMode.READ, PointData("level", "int"))
    assert td.device_name == "meter_1"
    assert td.point_name == "level"
    assert td.mode is EncodeMode.READ
    assert td.slave_id == 3
    assert td.max_quantity == 10
    assert td.values == []


def test_adapter_encode_write(cache):
    td = ModbusAdapter(cache).encode("meter_1", EncodeMode.WRITE, PointData("power", "float", 1.5))
    expected = PointTargetValue("power", 1.5).encode_raw_value("HOLDING_REGISTER", "Float32", False, True)
    assert td.values == expected
    decoded = PointRawValue("power").decode(
        [r.value for r in td.values], "HOLDING_REGISTER", "Float32", False, True
    )
    assert decoded == 1.5


def test_adapter_encode_unknown_device(cache):
    with pytest.raises(DeviceNotFoundError):
        ModbusAdapter(cache).encode("ghost", EncodeMode.READ, PointData("level", "int"))


def test_adapter_decode(cache):
    raw = RawData("meter_1", [PointRawValue("level", [7], 7)])
    assert ModbusAdapter(cache).decode(raw) == [
        DeviceData("meter_1", [PointData(point_name="level", value=7)])
    ]


def test_adapter_decode_rejects_other_data(cache):
    with pytest.raises(ProtocolDataFormatError):
        ModbusAdapter(cache).decode('{"deviceName": "meter_1"}')