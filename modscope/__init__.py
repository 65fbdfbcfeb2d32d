"""Modbus master toolkit: register encoding, requests, a TCP client, polling forms and saved form state."""

__version__ = "0.1.0"