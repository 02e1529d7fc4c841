from __future__ import annotations

import logging
import os

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Reference (index/ETF) closes come from Financial Modeling Prep.
    FMP_API_KEY: str | None = None

    # Local session files. Persistence is a CLI concern; the core never touches disk.
    BTM_SHEET: str = "data/portfolio_sheet.csv"
    BTM_SELECTION: str = "data/selection.json"
    BTM_CACHE_DIR: str = "data/cache"
    BTM_EXPORT_DIR: str = "exports"

    BTM_HTTP_TIMEOUT: float = 15.0
    # Comma-separated; the page this grew out of started with SPY checked.
    BTM_DEFAULT_SYMBOLS: str = "SPY"

    # Snake_case accessors so call sites read the same as the rest of the codebase.
    @property
    def fmp_api_key(self) -> str | None:
        return self.FMP_API_KEY

    @property
    def sheet_path(self) -> str:
        return self.BTM_SHEET

    @property
    def selection_path(self) -> str:
        return self.BTM_SELECTION

    @property
    def cache_dir(self) -> str:
        return self.BTM_CACHE_DIR

    @property
    def export_dir(self) -> str:
        return self.BTM_EXPORT_DIR

    @property
    def http_timeout(self) -> float:
        return float(self.BTM_HTTP_TIMEOUT)

    @property
    def default_symbols(self) -> list[str]:
        syms = [s.strip().upper() for s in (self.BTM_DEFAULT_SYMBOLS or "").split(",") if s.strip()]
        return list(dict.fromkeys(syms))


class ChartStyle(BaseModel):
    title: str = "Portfolio vs Market Performance"
    portfolio_color: str = "#00ff41"
    # Reference series cycle through this palette in composition order.
    palette: list[str] = ["#ff0040", "#ffcc00", "#00ccff", "#ff8800", "#cc00ff"]
    background: str = "#0a0a0a"
    grid: str = "#333333"
    text: str = "#cccccc"
    font_family: str = "monospace"
    figsize: tuple[float, float] = (12.0, 6.5)
    dpi: int = 150


def _settings_from_environ() -> Settings:
    values = {}
    for name, field in Settings.model_fields.items():
        raw = os.environ.get(name)
        if raw is None:
            values[name] = field.default
        elif name == "BTM_HTTP_TIMEOUT":
            try:
                values[name] = float(raw)
            except ValueError:
                logger.warning("ignoring invalid BTM_HTTP_TIMEOUT=%r", raw)
                values[name] = field.default
        else:
            values[name] = raw
    return Settings.model_construct(**values)


def load_settings() -> Settings:
    """
    Settings from the environment and `.env`.

    An unreadable `.env` or an invalid value falls back to the plain
    environment (bad values replaced by their defaults) so the CLI keeps working.
    """
    try:
        return Settings()
    except (OSError, PydanticValidationError) as e:
        logger.warning("could not load settings (%s); using environment defaults", e.__class__.__name__)
        return _settings_from_environ()
