"""Modbus client: connection handling, request dispatch and reply reporting.

The client talks to a *device* object created from the connection settings.
A device has ``state``, ``timeout`` (ms) and ``number_of_retries`` attributes,
``connect()`` (raising ``ConnectionError`` on failure), ``disconnect()`` and
``send(request, server)``, which returns a finished ``ModbusReply`` or None when
the request could not be sent. A Modbus/TCP device is built in; other
transports are supplied through ``device_factory``.
"""

from __future__ import annotations

import socket
import struct
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from modscope.codes import EXCEPTION_BYTE, FunctionCode, exception_description
from modscope.dataunit import ModbusDataUnit
from modscope.enums import ConnectionType, RegisterType
from modscope.requests import (
    ModbusMaskWriteParams,
    ModbusRequest,
    ModbusWriteParams,
    build_write_data_unit,
    create_mask_write_request,
    create_read_request,
    create_write_request,
)


class ClientState(IntEnum):
    """Connection state of the client."""

    UNCONNECTED = 0
    CONNECTING = 1
    CONNECTED = 2
    CLOSING = 3


@dataclass
class ConnectionSettings:
    """How to reach the device and how to talk to it."""

    type: ConnectionType = ConnectionType.TCP
    ip_address: str = "127.0.0.1"
    service_port: int = 502
    port_name: str = ""
    baud_rate: int = 9600
    word_length: int = 8
    parity: str = "none"
    stop_bits: int = 1
    flow_control: str = "none"
    set_dtr: bool = True
    set_rts: bool = True
    response_timeout: int = 250
    number_of_retries: int = 3
    inter_frame_delay: int = 0
    force_modbus15_and16_func: bool = False


@dataclass
class ModbusReply:
    """A finished request: the response PDU, its error state and, for reads, the decoded data."""

    class Error(IntEnum):
        """Why a reply failed."""

        NO_ERROR = 0
        READ_ERROR = 1
        WRITE_ERROR = 2
        CONNECTION_ERROR = 3
        CONFIGURATION_ERROR = 4
        TIMEOUT_ERROR = 5
        PROTOCOL_ERROR = 6
        REPLY_ABORTED_ERROR = 7
        UNKNOWN_ERROR = 8
        INVALID_RESPONSE_ERROR = 9

    server_address: int
    function_code: int
    data: bytes = b""
    error: Error = Error.NO_ERROR
    error_string: str = ""
    result: ModbusDataUnit | None = None
    request_data: ModbusDataUnit | None = None
    request_id: int = 0
    transaction_id: int = 0
    broadcast: bool = False

    @property
    def exception_code(self) -> int | None:
        """Exception code of a protocol error reply, None otherwise."""
        if self.error != ModbusReply.Error.PROTOCOL_ERROR:
            return None
        return self.data[0] if self.data else 0


class _Signal:
    """A list of callbacks invoked in connection order."""

    def __init__(self) -> None:
        self._slots: list[Callable[..., Any]] = []

    def connect(self, slot: Callable[..., Any]) -> None:
        self._slots.append(slot)

    def disconnect(self, slot: Callable[..., Any]) -> None:
        self._slots.remove(slot)

    def emit(self, *args: Any) -> None:
        for slot in list(self._slots):
            slot(*args)


def _reply_from_pdu(request: ModbusRequest, server: int, pdu: bytes) -> ModbusReply:
    if not pdu:
        return ModbusReply(
            server,
            request.function_code,
            error=ModbusReply.Error.INVALID_RESPONSE_ERROR,
            error_string="Invalid response.",
        )
    code, data = pdu[0], pdu[1:]
    base = code & ~EXCEPTION_BYTE
    if base != request.function_code:
        return ModbusReply(
            server,
            base,
            data,
            ModbusReply.Error.INVALID_RESPONSE_ERROR,
            "Invalid response.",
        )
    if code & EXCEPTION_BYTE:
        return ModbusReply(
            server, base, data, ModbusReply.Error.PROTOCOL_ERROR, "Modbus Exception Response."
        )
    return ModbusReply(server, base, data)


def _decode_read_result(unit: ModbusDataUnit, reply: ModbusReply) -> ModbusDataUnit | None:
    if not reply.data:
        return None
    byte_count = reply.data[0]
    payload = reply.data[1 : 1 + byte_count]
    if len(payload) != byte_count:
        return None
    if unit.register_type in (RegisterType.COILS, RegisterType.DISCRETE_INPUTS):
        values: tuple[int, ...] | list[int] = [
            (byte >> bit) & 1 for byte in payload for bit in range(8)
        ]
    else:
        if byte_count % 2:
            return None
        values = struct.unpack(f">{byte_count // 2}H", payload)
    result = ModbusDataUnit(unit.register_type, unit.start_address, len(values))
    for index, value in enumerate(values):
        result.set_value(index, value)
    return result


class _TcpDevice:
    """Blocking Modbus/TCP transport using MBAP framing."""

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self.timeout = 1000
        self.number_of_retries = 3
        self.state = ClientState.UNCONNECTED
        self._sock: socket.socket | None = None
        self._tid = 0

    def _seconds(self) -> float:
        return max(self.timeout, 1) / 1000

    def connect(self) -> None:
        self.state = ClientState.CONNECTING
        try:
            self._sock = socket.create_connection((self.host, self.port), timeout=self._seconds())
        except OSError as exc:
            self.state = ClientState.UNCONNECTED
            raise ConnectionError(str(exc) or type(exc).__name__) from exc
        self.state = ClientState.CONNECTED

    def disconnect(self) -> None:
        if self._sock is not None:
            self.state = ClientState.CLOSING
            self._sock.close()
            self._sock = None
        self.state = ClientState.UNCONNECTED

    def _read_exact(self, size: int) -> bytes:
        assert self._sock is not None
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self._sock.recv(size - len(chunks))
            if not chunk:
                raise ConnectionError("Connection closed by the remote host")
            chunks += chunk
        return bytes(chunks)

    def _receive(self, tid: int) -> bytes:
        while True:
            rtid, _protocol, length, _unit = struct.unpack(">HHHB", self._read_exact(7))
            body = self._read_exact(length - 1) if length > 1 else b""
            if rtid == tid:
                return body

    def send(self, request: ModbusRequest, server: int) -> ModbusReply | None:
        if self.state != ClientState.CONNECTED or self._sock is None or not request.is_valid():
            return None
        pdu = request.to_bytes()
        for _attempt in range(self.number_of_retries + 1):
            self._tid = (self._tid + 1) & 0xFFFF
            frame = struct.pack(">HHHB", self._tid, 0, len(pdu) + 1, server & 0xFF) + pdu
            try:
                self._sock.settimeout(self._seconds())
                self._sock.sendall(frame)
                response = self._receive(self._tid)
            except TimeoutError:
                continue
            except OSError as exc:
                return ModbusReply(
                    server,
                    request.function_code,
                    error=ModbusReply.Error.CONNECTION_ERROR,
                    error_string=str(exc),
                )
            return _reply_from_pdu(request, server, response)
        return ModbusReply(
            server,
            request.function_code,
            error=ModbusReply.Error.TIMEOUT_ERROR,
            error_string="Request timeout.",
        )


def _default_device_factory(settings: ConnectionSettings) -> _TcpDevice:
    if settings.type == ConnectionType.TCP:
        return _TcpDevice(settings.ip_address, settings.service_port)
    raise ValueError("no serial transport available; pass a device_factory to ModbusClient")


_WRITE_FAILURES = {
    FunctionCode.WRITE_SINGLE_COIL: "Coil Write Failure",
    FunctionCode.WRITE_MULTIPLE_COILS: "Coil Write Failure",
    FunctionCode.WRITE_SINGLE_REGISTER: "Register Write Failure",
    FunctionCode.WRITE_MULTIPLE_REGISTERS: "Register Write Failure",
    FunctionCode.MASK_WRITE_REGISTER: "Mask Register Write Failure",
}

_NOT_CONNECTED_WRITE_ERRORS = {
    RegisterType.COILS: "Coil Write Failure",
    RegisterType.HOLDING_REGISTERS: "Register Write Failure",
}


class ModbusClient:
    """Sends read, write and raw requests and reports requests, replies and errors through signals."""

    def __init__(
        self, device_factory: Callable[[ConnectionSettings], Any] | None = None
    ) -> None:
        self._device_factory = device_factory or _default_device_factory
        self._device: Any = None
        self._settings: ConnectionSettings | None = None
        self._connection_type = ConnectionType.SERIAL
        self._transaction_id = -1

        self.modbus_request = _Signal()
        self.modbus_reply = _Signal()
        self.modbus_error = _Signal()
        self.modbus_connection_error = _Signal()
        self.modbus_connecting = _Signal()
        self.modbus_connected = _Signal()
        self.modbus_disconnected = _Signal()

    @property
    def connection_type(self) -> ConnectionType:
        """Transport of the last connection attempt."""
        return self._connection_type

    @property
    def state(self) -> ClientState:
        """Current connection state."""
        if self._device is None:
            return ClientState.UNCONNECTED
        return ClientState(self._device.state)

    @property
    def timeout(self) -> int:
        """Response timeout in milliseconds, 0 without a device."""
        return self._device.timeout if self._device is not None else 0

    @timeout.setter
    def timeout(self, value: int) -> None:
        if self._device is not None:
            self._device.timeout = value

    @property
    def number_of_retries(self) -> int:
        """Number of retries after a timeout, 0 without a device."""
        return self._device.number_of_retries if self._device is not None else 0

    @number_of_retries.setter
    def number_of_retries(self, value: int) -> None:
        if self._device is not None:
            self._device.number_of_retries = value

    def connect_device(self, settings: ConnectionSettings) -> None:
        """Replace the current device with one built from settings and connect it."""
        if self._device is not None:
            self._device.disconnect()
            self._device = None

        device = self._device_factory(settings)
        device.timeout = settings.response_timeout
        device.number_of_retries = settings.number_of_retries
        self._device = device
        self._settings = settings
        self._connection_type = settings.type

        self.modbus_connecting.emit(settings)
        try:
            device.connect()
        except ConnectionError as exc:
            self.modbus_connection_error.emit(f"Connection error. {exc}")
            self.modbus_disconnected.emit(settings)
            return

        if device.state == ClientState.CONNECTED:
            self._transaction_id = -1
            self.modbus_connected.emit(settings)

    def disconnect_device(self) -> None:
        """Disconnect the device, if any."""
        if self._device is None:
            return
        was = self._device.state
        self._device.disconnect()
        if was != ClientState.UNCONNECTED and self._device.state == ClientState.UNCONNECTED:
            self.modbus_disconnected.emit(self._settings)

    def is_valid(self) -> bool:
        """True once a device has been created."""
        return self._device is not None

    def _connected(self) -> bool:
        return self._device is not None and self._device.state == ClientState.CONNECTED

    def _dispatch(
        self,
        request: ModbusRequest,
        server: int,
        request_id: int,
        request_data: ModbusDataUnit | None = None,
    ) -> ModbusReply | None:
        self._transaction_id += 1
        self.modbus_request.emit(request_id, server, self._transaction_id, request)
        reply = self._device.send(request, server)
        if reply is None:
            return None
        reply.request_id = request_id
        reply.transaction_id = self._transaction_id
        if request_data is not None:
            reply.request_data = request_data
            if reply.error == ModbusReply.Error.NO_ERROR:
                reply.result = _decode_read_result(request_data, reply)
                if reply.result is None:
                    reply.error = ModbusReply.Error.INVALID_RESPONSE_ERROR
                    reply.error_string = "Invalid response."
        return reply

    def send_raw_request(self, request: ModbusRequest, server: int, request_id: int) -> None:
        """Send any request PDU; reports 'Invalid Modbus Request' if the device refuses it."""
        if not self._connected():
            return
        reply = self._dispatch(request, server, request_id)
        if reply is None:
            self.modbus_error.emit("Invalid Modbus Request", request_id)
            return
        if not reply.broadcast:
            self.modbus_reply.emit(reply)

    def send_read_request(
        self,
        point_type: RegisterType,
        start_address: int,
        value_count: int,
        server: int,
        request_id: int,
    ) -> None:
        """Read value_count points of point_type starting at a zero-based address."""
        if not self._connected():
            return
        unit = ModbusDataUnit(point_type, start_address, value_count)
        request = create_read_request(unit)
        if not request.is_valid():
            return
        reply = self._dispatch(request, server, request_id, unit)
        if reply is not None and not reply.broadcast:
            self.modbus_reply.emit(reply)

    def write_register(
        self, point_type: RegisterType, params: ModbusWriteParams, request_id: int
    ) -> None:
        """Write coils or holding registers as described by params."""
        unit = build_write_data_unit(point_type, params)
        if not self._connected():
            self.modbus_error.emit(_NOT_CONNECTED_WRITE_ERRORS.get(point_type, ""), request_id)
            return
        use_multiple = bool(self._settings and self._settings.force_modbus15_and16_func)
        request = create_write_request(unit, use_multiple)
        if not request.is_valid():
            return
        reply = self._dispatch(request, params.node, request_id)
        if reply is not None and not reply.broadcast:
            self._on_write_reply(reply)

    def mask_write_register(self, params: ModbusMaskWriteParams, request_id: int) -> None:
        """Send a mask write register request."""
        if not self._connected():
            self.modbus_error.emit("Mask Write Register Failure", request_id)
            return
        request = create_mask_write_request(params)
        reply = self._dispatch(request, params.node, request_id)
        if reply is not None and not reply.broadcast:
            self._on_write_reply(reply)

    def _on_write_reply(self, reply: ModbusReply) -> None:
        if (
            reply.function_code == FunctionCode.MASK_WRITE_REGISTER
            and reply.error == ModbusReply.Error.INVALID_RESPONSE_ERROR
        ):
            reply.error = ModbusReply.Error.NO_ERROR
            reply.error_string = ""

        self.modbus_reply.emit(reply)

        description = _WRITE_FAILURES.get(reply.function_code)
        if description is None:
            return
        if reply.error == ModbusReply.Error.PROTOCOL_ERROR:
            code = reply.exception_code or 0
            self.modbus_error.emit(
                f"{description}. {exception_description(code)} (0x{code:02X})", reply.request_id
            )
        elif reply.error != ModbusReply.Error.NO_ERROR:
            self.modbus_error.emit(f"{description}. {reply.error_string}", reply.request_id)