# modscope

`modscope` is a Modbus master toolkit. It holds the logic a register-scanning
tool is built on: encoding values into 16-bit registers, building read, write
and mask-write requests, a small client with a built-in Modbus/TCP transport,
the polling logic of one scan view, and saving a view's state to a binary
stream or a settings mapping.

It has no dependencies outside the standard library.

## Modules

| Module                  | Contents |
|-------------------------|----------|
| `modscope.enums`        | `AddressBase`, `DisplayMode`, `DataDisplayMode`, `ByteOrder`, `ConnectionType`, `TransmissionMode`, `CaptureMode`, `SimulationMode`, `RegisterType`; `save_setting()` / `load_setting()` store `AddressBase`, `DisplayMode`, `DataDisplayMode` and `ByteOrder` in a settings mapping. |
| `modscope.ranges`       | `Range` (bounds put in order, `contains()` and `in`), and the limits `address_range(zero_based)` (0 or 1 to 65535), `length_range()` (1..125), `slave_range()` (1..255). |
| `modscope.codes`        | `FunctionCode`, `ExceptionCode`, `function_name()`, `exception_description()`, `is_valid_function()`, `is_exception_function()`. |
| `modscope.numeric`      | `break_*` / `make_*` functions for 16-, 32- and 64-bit integers, floats and doubles, low word first, in direct or swapped byte order. |
| `modscope.dataunit`     | `ModbusDataUnit`: register type, start address and values, remembering which values have been set. |
| `modscope.simulation`   | `RandomSimulationParams`, `IncrementSimulationParams`, `DecrementSimulationParams` and `ModbusSimulationParams` with `to_bytes()` / `from_bytes()`. |
| `modscope.requests`     | `ModbusRequest`, `ModbusWriteParams`, `ModbusMaskWriteParams`, `create_read_request()`, `create_write_request()`, `create_mask_write_request()`, the `create_*_data_unit()` helpers and `build_write_data_unit()`. |
| `modscope.writedialogs` | Value handling for register writes: `input_range_for_mode()`, `coerce_write_value()`, `register_to_bits()`, `bits_to_register()`, `accept_write()`. |
| `modscope.client`       | `ModbusClient`, `ConnectionSettings`, `ClientState`, `ModbusReply`. |
| `modscope.displaydef`   | `DisplayDefinition` (device, point type, address, length, scan rate, address base) and `filter_simulation_map()`. |
| `modscope.scanform`     | `ScanForm`: polling, reply validation, status text, poll counters and a bounded traffic log. |
| `modscope.formfile`     | `FormState`, `write_form_state()` / `read_form_state()` for the binary form, `save_form_settings()` / `load_form_settings()` for a settings mapping. |

## Examples

Splitting a float across two registers and joining it back:

```python
from modscope.enums import ByteOrder
from modscope.numeric import break_float, make_float

lo, hi = break_float(1.5, ByteOrder.DIRECT)
assert make_float(lo, hi, ByteOrder.DIRECT) == 1.5
```

Checking values against the Modbus limits:

```python
from modscope.ranges import address_range, length_range

assert address_range(True).contains(0)
assert 0 not in address_range(False)
assert length_range().contains(125)
```

Naming function and exception codes:

```python
from modscope.codes import function_name, exception_description, is_valid_function

print(function_name(3))           # READ HOLDING REGS
print(exception_description(2))   # ILLEGAL DATA ADDRESS
print(is_valid_function(0x7F))    # False
```

Tracking which values of a block have been set:

```python
from modscope.dataunit import ModbusDataUnit
from modscope.enums import RegisterType

unit = ModbusDataUnit(RegisterType.HOLDING_REGISTERS, 0, 4)
unit.set_value(1, 0x1234)
assert unit.has_value(1)
assert not unit.has_value(0)
```

Building the request that writes a float to holding register 1 (one-based):

```python
from modscope.enums import DataDisplayMode, RegisterType
from modscope.requests import ModbusWriteParams, build_write_data_unit, create_write_request

params = ModbusWriteParams(node=1, address=1, value=1.5,
                           display_mode=DataDisplayMode.FLOATING_PT)
unit = build_write_data_unit(RegisterType.HOLDING_REGISTERS, params)
request = create_write_request(unit, False)
print(request.to_bytes().hex())   # 10000000020400003fc0
```

Polling a block of registers over Modbus/TCP:

```python
from modscope.client import ConnectionSettings, ModbusClient
from modscope.displaydef import DisplayDefinition
from modscope.scanform import ScanForm

client = ModbusClient()
form = ScanForm(1, client, DisplayDefinition(device_id=1, point_address=1, length=10))
client.connect_device(ConnectionSettings(ip_address="127.0.0.1", service_port=502))
print(form.status, form.data)
```

Connecting sends the first read at once. `ScanForm` keeps no timer of its
own: `timer_active` tells whether polling is on, and the caller calls
`on_timeout()` every `scan_rate` milliseconds.

Saving and restoring a view's state:

```python
import io
from modscope.formfile import FORM_VERSION, FormState, read_form_state, write_form_state

buffer = io.BytesIO()
write_form_state(buffer, FormState(form_id=3, codepage="cp1251"))
buffer.seek(0)
assert read_form_state(buffer, FORM_VERSION).codepage == "cp1251"
```

`read_form_state()` also reads streams written by earlier versions (1.0 to
1.6) when given their version; the caller stores the version beside the data.

## Client and transports

`ModbusClient` reports what happens through signals, each with `connect()`:
`modbus_request`, `modbus_reply`, `modbus_error`, `modbus_connection_error`,
`modbus_connecting`, `modbus_connected` and `modbus_disconnected`. Requests
are sent synchronously: a call returns after the reply, a timeout (with
`number_of_retries` retries) or an error.

Only Modbus/TCP is built in. For any other transport, pass a
`device_factory` that builds an object with `state`, `timeout`,
`number_of_retries`, `connect()`, `disconnect()` and `send(request, server)`.

## What the package does not do

- It has no graphical interface and no command-line program.
- It has no serial (RTU or ASCII) transport of its own.
- It stores simulation settings but does not run simulations.
- It does not format values for display, print views or capture traffic to
  text files.

## Running the tests

Install the package with its `test` extra and run `pytest` from the project
directory.