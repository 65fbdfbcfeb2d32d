"""Modbus function codes, exception codes and their display names."""

from __future__ import annotations

from enum import IntEnum

EXCEPTION_BYTE = 0x80


class FunctionCode(IntEnum):
    """Modbus public function codes."""

    INVALID = 0x00
    READ_COILS = 0x01
    READ_DISCRETE_INPUTS = 0x02
    READ_HOLDING_REGISTERS = 0x03
    READ_INPUT_REGISTERS = 0x04
    WRITE_SINGLE_COIL = 0x05
    WRITE_SINGLE_REGISTER = 0x06
    READ_EXCEPTION_STATUS = 0x07
    DIAGNOSTICS = 0x08
    GET_COMM_EVENT_COUNTER = 0x0B
    GET_COMM_EVENT_LOG = 0x0C
    WRITE_MULTIPLE_COILS = 0x0F
    WRITE_MULTIPLE_REGISTERS = 0x10
    REPORT_SERVER_ID = 0x11
    READ_FILE_RECORD = 0x14
    WRITE_FILE_RECORD = 0x15
    MASK_WRITE_REGISTER = 0x16
    READ_WRITE_MULTIPLE_REGISTERS = 0x17
    READ_FIFO_QUEUE = 0x18
    ENCAPSULATED_INTERFACE_TRANSPORT = 0x2B


class ExceptionCode(IntEnum):
    """Modbus exception response codes."""

    ILLEGAL_FUNCTION = 0x01
    ILLEGAL_DATA_ADDRESS = 0x02
    ILLEGAL_DATA_VALUE = 0x03
    SERVER_DEVICE_FAILURE = 0x04
    ACKNOWLEDGE = 0x05
    SERVER_DEVICE_BUSY = 0x06
    NEGATIVE_ACKNOWLEDGE = 0x07
    MEMORY_PARITY_ERROR = 0x08
    GATEWAY_PATH_UNAVAILABLE = 0x0A
    GATEWAY_TARGET_DEVICE_FAILED_TO_RESPOND = 0x0B
    EXTENDED_EXCEPTION = 0xFF


_EXCEPTION_DESCRIPTIONS = {
    ExceptionCode.ILLEGAL_FUNCTION: "ILLEGAL FUNCTION",
    ExceptionCode.ILLEGAL_DATA_ADDRESS: "ILLEGAL DATA ADDRESS",
    ExceptionCode.ILLEGAL_DATA_VALUE: "ILLEGAL DATA VALUE",
    ExceptionCode.SERVER_DEVICE_FAILURE: "SERVER DEVICE FAILURE",
    ExceptionCode.ACKNOWLEDGE: "ACKNOWLEDGE",
    ExceptionCode.SERVER_DEVICE_BUSY: "SERVER DEVICE BUSY",
    ExceptionCode.NEGATIVE_ACKNOWLEDGE: "NEGATIVE ACKNOWLEDGEMENT",
    ExceptionCode.MEMORY_PARITY_ERROR: "MEMORY PARITY ERROR",
    ExceptionCode.GATEWAY_PATH_UNAVAILABLE: "GATEWAY PATH UNAVAILABLE",
    ExceptionCode.GATEWAY_TARGET_DEVICE_FAILED_TO_RESPOND: "GATEWAY TARGET DEVICE FAILED TO RESPOND",
    ExceptionCode.EXTENDED_EXCEPTION: "EXTENDED EXCEPTION",
}

_FUNCTION_NAMES = {
    FunctionCode.READ_COILS: "READ COILS",
    FunctionCode.READ_DISCRETE_INPUTS: "READ INPUTS",
    FunctionCode.READ_HOLDING_REGISTERS: "READ HOLDING REGS",
    FunctionCode.READ_INPUT_REGISTERS: "READ INPUT REGS",
    FunctionCode.WRITE_SINGLE_COIL: "WRITE SINGLE COIL",
    FunctionCode.WRITE_SINGLE_REGISTER: "WRITE SINGLE REG",
    FunctionCode.READ_EXCEPTION_STATUS: "READ EXCEPTION STAT",
    FunctionCode.DIAGNOSTICS: "DIAGNOSTICS",
    FunctionCode.GET_COMM_EVENT_COUNTER: "GET COMM EVENT CNT",
    FunctionCode.GET_COMM_EVENT_LOG: "GET COMM EVENT LOG",
    FunctionCode.WRITE_MULTIPLE_COILS: "WRITE MULT COILS",
    FunctionCode.WRITE_MULTIPLE_REGISTERS: "WRITE MULT REGS",
    FunctionCode.REPORT_SERVER_ID: "REPORT SLAVE ID",
    FunctionCode.READ_FILE_RECORD: "READ FILE RECORD",
    FunctionCode.WRITE_FILE_RECORD: "WRITE FILE RECORD",
    FunctionCode.MASK_WRITE_REGISTER: "MASK WRITE REG",
    FunctionCode.READ_WRITE_MULTIPLE_REGISTERS: "READ WRITE MULT REGS",
    FunctionCode.READ_FIFO_QUEUE: "READ FIFO QUEUE",
    FunctionCode.ENCAPSULATED_INTERFACE_TRANSPORT: "ENC IFACE TRANSPORT",
}

_VALID_FUNCTIONS = frozenset(_FUNCTION_NAMES)


def exception_description(code: int) -> str:
    """Human-readable name of an exception code; empty for unknown codes."""
    return _EXCEPTION_DESCRIPTIONS.get(code, "")


def function_name(code: int) -> str:
    """Short name of a function code, ignoring the exception bit; empty if unknown."""
    return _FUNCTION_NAMES.get(code & ~EXCEPTION_BYTE, "")


def is_valid_function(code: int) -> bool:
    """True if code is one of the supported public function codes."""
    return code in _VALID_FUNCTIONS


def is_exception_function(code: int) -> bool:
    """True if the exception bit is set in a response function code."""
    return bool(code & EXCEPTION_BYTE)