"""Dependency functions for FastAPI routes."""

from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from printbridge.controllers.print_job import PrintJobOrchestrator
from printbridge.controllers.serial_transport import SerialTransport
from printbridge.services.escpos_builder import EscPosCommandBuilder
from printbridge.services.tspl_builder import TsplCommandBuilder


# The app factory prepares one instance of each and keeps it on app.state.
# HTTPConnection lets the same dependencies serve HTTP routes and websockets.


def get_transport(connection: HTTPConnection) -> SerialTransport:
    return connection.app.state.transport


def get_orchestrator(connection: HTTPConnection) -> PrintJobOrchestrator:
    return connection.app.state.orchestrator


def get_tspl_builder(connection: HTTPConnection) -> TsplCommandBuilder:
    return connection.app.state.tspl


def get_escpos_builder(connection: HTTPConnection) -> EscPosCommandBuilder:
    return connection.app.state.escpos


Transport = Annotated[SerialTransport, Depends(get_transport)]
Orchestrator = Annotated[PrintJobOrchestrator, Depends(get_orchestrator)]
Tspl = Annotated[TsplCommandBuilder, Depends(get_tspl_builder)]
EscPos = Annotated[EscPosCommandBuilder, Depends(get_escpos_builder)]
