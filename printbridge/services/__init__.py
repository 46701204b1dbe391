"""Service layer for printbridge."""

from printbridge.services.escpos_builder import EscPosCommandBuilder
from printbridge.services.monochrome_encoder import MonochromeEncoder
from printbridge.services.tspl_builder import TsplCommandBuilder, TsplOptions

__all__ = ["EscPosCommandBuilder", "MonochromeEncoder", "TsplCommandBuilder", "TsplOptions"]
