import logging
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from printbridge.models.bitmap import BitPolarity


class ReceiptColumns(BaseModel):
    """Fixed-width layout of the receipt item table."""

    name_width: int = Field(20, gt=0)
    qty_width: int = Field(4, gt=0)
    rate_width: int = Field(7, gt=0)
    amount_width: int = Field(7, gt=0)
    rule_width: int = Field(42, gt=0)
    rule_char: str = Field("-", min_length=1, max_length=1)


class Settings(BaseSettings):
    """Application settings."""

    # Base configuration
    log_level: str = "INFO"
    database_url: str = "sqlite:///./printbridge.db"
    cors_allowed_origins: str = "*"  # comma separated

    # Label printer (TSPL)
    label_width_mm: float = Field(48.0, gt=0)
    label_height_mm: float = Field(25.0, gt=0)
    label_gap_mm: float = Field(3.0, ge=0)
    density: int = Field(6, ge=0, le=15)
    speed: int = Field(3, ge=1, le=5)
    dpi: int = Field(203, gt=0)
    reference_x: int = 0
    reference_y: int = 0
    direction: int = Field(1, ge=0, le=1)
    tspl_print_form: Literal["sets", "copies"] = "sets"
    tspl_bitmap_polarity: BitPolarity = BitPolarity.INK_IS_ONE
    label_dither: bool = True

    # Receipt printer (ESC/POS)
    receipt_print_width_mm: float = Field(48.0, gt=0)  # printable width of 58mm paper
    receipt_threshold: int = Field(128, ge=0, le=255)
    receipt_dither: bool = False
    receipt_feed_lines: int = Field(3, ge=0, le=255)
    receipt_columns: ReceiptColumns = ReceiptColumns()
    receipt_encoding: str = "utf-8"
    currency_symbol: str = "₹"
    shop_name: str = "Bhootiya Fabric Collection"
    shop_address_lines: list[str] = ["Moti Ganj, Bakebar Road, Bharthana"]
    shop_phone: str = "+91 82736 89065"
    thank_you_line: str = "Thank you, Visit Again!"

    # Transport
    spp_uuid: str = "00001101-0000-1000-8000-00805F9B34FB"
    rfcomm_channel: int = Field(1, ge=1, le=30)
    serial_baudrate: int = 115200
    connect_timeout: float = Field(10.0, gt=0)
    write_timeout: float = Field(10.0, gt=0)
    write_chunk_size: int = Field(4096, gt=0)
    auto_connect_on_startup: bool = False

    class Config:
        env_file = ".env"
        env_prefix = "PRINTBRIDGE_"
        env_nested_delimiter = "__"
        extra = "ignore"


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get application settings.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the application.

    Args:
        level: Log level name. Defaults to the ``log_level`` setting.
    """
    resolved = getattr(logging, (level or get_settings().log_level).upper(), logging.INFO)
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("printbridge").setLevel(resolved)
