"""
Store configuration.

StoreConfig is the validated set of knobs a Store is built from. All
environment parsing lives here so the store itself only ever sees typed
values.
"""

import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import StoreConfigError

ENV_PREFIX = "LAZYSTORE_"


@dataclass(frozen=True)
class StoreConfig:
    """
    Validated page store configuration.

    Attributes:
        page_size: Records per page, fixed for the store's lifetime
        load_horizon: Record radius around the read offset that must be
            loaded. None means one page worth of records.
        unload_horizon: Record radius beyond which pages are evicted
        read_offset: Initial read offset, None leaves the store idle
    """

    page_size: int
    load_horizon: Optional[int] = None
    unload_horizon: float = math.inf
    read_offset: Optional[int] = None

    def __post_init__(self):
        if not self.page_size or self.page_size < 0:
            raise StoreConfigError("created Store without page_size")

        if self.load_horizon is not None and not 0 <= self.load_horizon < math.inf:
            raise StoreConfigError(
                f"created Store with invalid load_horizon, got {self.load_horizon}")

        if self.unload_horizon < self.effective_load_horizon:
            raise StoreConfigError(
                "created Store with unload_horizon less than load_horizon")

    @property
    def effective_load_horizon(self) -> int:
        """Load horizon with the one-page default applied."""
        if self.load_horizon is None:
            return self.page_size
        return self.load_horizon

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 prefix: str = ENV_PREFIX) -> "StoreConfig":
        """
        Build a config from environment variables.

        Reads PAGE_SIZE, LOAD_HORIZON, UNLOAD_HORIZON and READ_OFFSET under
        the given prefix. UNLOAD_HORIZON accepts "inf".

        Raises:
            StoreConfigError: If a value is missing or cannot be parsed
        """
        environ = os.environ if environ is None else environ

        raw_page_size = environ.get(f"{prefix}PAGE_SIZE")
        if raw_page_size is None:
            raise StoreConfigError("created Store without page_size")

        raw_load = environ.get(f"{prefix}LOAD_HORIZON")
        raw_unload = environ.get(f"{prefix}UNLOAD_HORIZON")
        raw_offset = environ.get(f"{prefix}READ_OFFSET")

        return cls(
            page_size=_parse_int(f"{prefix}PAGE_SIZE", raw_page_size),
            load_horizon=None if raw_load is None else _parse_int(
                f"{prefix}LOAD_HORIZON", raw_load),
            unload_horizon=math.inf if raw_unload is None else _parse_horizon(
                f"{prefix}UNLOAD_HORIZON", raw_unload),
            read_offset=None if raw_offset is None else _parse_int(
                f"{prefix}READ_OFFSET", raw_offset),
        )


def _parse_int(name: str, raw_value: str) -> int:
    try:
        return int(raw_value)
    except ValueError as error:
        raise StoreConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'"
        ) from error


def _parse_horizon(name: str, raw_value: str) -> float:
    if raw_value.strip().lower() in ("inf", "infinity", "unbounded"):
        return math.inf
    return _parse_int(name, raw_value)
