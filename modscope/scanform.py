"""One scan window: polls a block of points and tracks replies, status and counters."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum

from modscope.client import ClientState, ModbusClient, ModbusReply
from modscope.codes import EXCEPTION_BYTE, FunctionCode, exception_description
from modscope.displaydef import DisplayDefinition
from modscope.enums import AddressBase, RegisterType
from modscope.requests import ModbusRequest

STATUS_UNINITIALIZED = "Data Uninitialized"
STATUS_NO_RESPONSES = "No Responses from Slave Device"
STATUS_INVALID_LENGTH = "No Scan: Invalid Data Length Specified"
STATUS_INVALID_RESPONSE = "Received Invalid Response MODBUS Query"
STATUS_NOT_CONNECTED = "Device NOT CONNECTED!"

_READ_FUNCTIONS = frozenset(
    {
        FunctionCode.READ_COILS,
        FunctionCode.READ_DISCRETE_INPUTS,
        FunctionCode.READ_HOLDING_REGISTERS,
        FunctionCode.READ_INPUT_REGISTERS,
    }
)

_BIT_READS = frozenset({FunctionCode.READ_COILS, FunctionCode.READ_DISCRETE_INPUTS})
_REGISTER_READS = frozenset(
    {FunctionCode.READ_HOLDING_REGISTERS, FunctionCode.READ_INPUT_REGISTERS}
)


class TrafficDirection(Enum):
    """Whether a logged PDU was sent or received."""

    REQUEST = "request"
    RESPONSE = "response"


@dataclass(frozen=True)
class TrafficEntry:
    """One PDU in the traffic log."""

    direction: TrafficDirection
    device_id: int
    transaction_id: int
    pdu: bytes


class ScanForm:
    """Polls the points of a display definition through a client and keeps the results."""

    def __init__(
        self,
        form_id: int,
        client: ModbusClient,
        display_definition: DisplayDefinition | None = None,
    ) -> None:
        self.form_id = form_id
        self.client = client
        self.is_active = False
        self.status = ""
        self.data: list[int] = []
        self.number_of_polls = 0
        self.valid_slave_responses = 0
        self.timer_active = False
        self._dd = display_definition or DisplayDefinition()
        self._traffic: deque[TrafficEntry] = deque(maxlen=max(self._dd.log_view_limit, 1))
        self._valid_snapshot = 0
        self._no_response_counter = 0

        client.modbus_request.connect(self.on_modbus_request)
        client.modbus_reply.connect(self.on_modbus_reply)
        client.modbus_connected.connect(lambda _settings: self.on_connected())
        client.modbus_disconnected.connect(lambda _settings: self.on_disconnected())

    @property
    def display_definition(self) -> DisplayDefinition:
        """The current polling parameters."""
        return self._dd

    @property
    def scan_rate(self) -> int:
        """Polling interval in milliseconds."""
        return self._dd.scan_rate

    @property
    def traffic(self) -> list[TrafficEntry]:
        """Logged PDUs, oldest first, at most the log view limit."""
        return list(self._traffic)

    def _connected(self) -> bool:
        return self.client.state == ClientState.CONNECTED

    def _setup_output(self) -> None:
        self.data = []
        self._traffic = deque(self._traffic, maxlen=max(self._dd.log_view_limit, 1))

    def set_display_definition(self, dd: DisplayDefinition) -> None:
        """Switch to new polling parameters and start polling them."""
        self._dd = dd
        self.status = STATUS_UNINITIALIZED
        self._setup_output()
        self.begin_update()

    def change_address_base(self, base: AddressBase) -> None:
        """Switch between zero- and one-based addresses, keeping the polled points."""
        self.set_display_definition(self._dd.with_address_base(base))

    def _send_read(self) -> None:
        dd = self._dd
        self.client.send_read_request(
            dd.point_type, dd.start_address(), dd.length, dd.device_id, self.form_id
        )

    def begin_update(self) -> None:
        """Send a read at once, if connected, and start the scan timer."""
        if not self._connected():
            return
        if self._dd.is_scan_range_valid():
            self._send_read()
        else:
            self.status = STATUS_INVALID_LENGTH
        self.timer_active = True

    def on_timeout(self) -> None:
        """One tick of the scan timer: poll again and note missing responses."""
        if not self._connected():
            return
        if not self._dd.is_scan_range_valid():
            return
        if self._valid_snapshot == self.valid_slave_responses:
            self._no_response_counter += 1
            if self._no_response_counter > self.client.number_of_retries:
                self.status = STATUS_NO_RESPONSES
        self._send_read()

    def is_valid_reply(self, reply: ModbusReply) -> bool:
        """True if a read reply covers exactly the polled points."""
        dd = self._dd
        address = dd.start_address()
        code = reply.function_code
        if code not in _BIT_READS and code not in _REGISTER_READS:
            return True
        result = reply.result
        if result is None:
            return False
        if code in _BIT_READS:
            return result.start_address == address and (result.value_count - dd.length) < 8
        return result.value_count == dd.length and result.start_address == address

    def _should_log(self, request_id: int, device_id: int) -> bool:
        if request_id == self.form_id and device_id == self._dd.device_id:
            return True
        return request_id == 0 and self.is_active

    def _log(self, entry: TrafficEntry) -> None:
        self._traffic.append(entry)

    def on_modbus_request(
        self, request_id: int, device_id: int, transaction_id: int, request: ModbusRequest
    ) -> None:
        """Log a sent request and count it as a poll if it is this form's read."""
        if self._should_log(request_id, device_id):
            self._log(
                TrafficEntry(
                    TrafficDirection.REQUEST, device_id, transaction_id, request.to_bytes()
                )
            )
        if request.function_code in _READ_FUNCTIONS and request_id == self.form_id:
            self.number_of_polls += 1

    def _log_reply(self, reply: ModbusReply) -> None:
        if reply.error not in (ModbusReply.Error.NO_ERROR, ModbusReply.Error.PROTOCOL_ERROR):
            return
        if not self._should_log(reply.request_id, reply.server_address):
            return
        code = reply.function_code & 0xFF
        if reply.error == ModbusReply.Error.PROTOCOL_ERROR:
            code |= EXCEPTION_BYTE
        self._log(
            TrafficEntry(
                TrafficDirection.RESPONSE,
                reply.server_address,
                reply.transaction_id,
                bytes([code]) + reply.data,
            )
        )

    def on_modbus_reply(self, reply: ModbusReply | None) -> None:
        """Handle a finished request: update data and status for this form's reads."""
        if reply is None:
            return
        self._log_reply(reply)

        has_error = reply.error != ModbusReply.Error.NO_ERROR
        if reply.function_code not in _READ_FUNCTIONS:
            if not has_error:
                self.begin_update()
            return

        if reply.request_id != self.form_id:
            return

        if not has_error:
            if not self.is_valid_reply(reply):
                self.status = STATUS_INVALID_RESPONSE
            else:
                self.data = reply.result.values if reply.result is not None else []
                self.status = ""
                self.valid_slave_responses += 1
        elif reply.error == ModbusReply.Error.PROTOCOL_ERROR:
            code = reply.exception_code or 0
            self.status = f"{exception_description(code)} (0x{code:02X})"
        else:
            self.status = reply.error_string

        self._no_response_counter = 0
        self._valid_snapshot = self.valid_slave_responses

    def on_connected(self) -> None:
        """Clear the traffic log and start polling."""
        self._traffic.clear()
        self.begin_update()

    def on_disconnected(self) -> None:
        """Stop polling and report the lost connection."""
        self.timer_active = False
        self.status = STATUS_NOT_CONNECTED

    def reset_counters(self) -> None:
        """Zero the poll and response counters and clear the traffic log."""
        self.number_of_polls = 0
        self.valid_slave_responses = 0
        self._valid_snapshot = 0
        self._traffic.clear()

    @property
    def point_type(self) -> RegisterType:
        """Register type being polled."""
        return self._dd.point_type