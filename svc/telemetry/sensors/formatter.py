# telemetry/sensors/formatter.py
from __future__ import annotations
import logging
import re
import time
from typing import Optional, Union

from .interface import SensorDescriptor
from ..logs import TRACE

logger = logging.getLogger(__name__)

TEMPERATURE = "temperature"

# Same prefix atof() would accept from a sysfs attribute: sign and digits
_LEADING_INT = re.compile(r"[+-]?\d+")


def decode_sample(raw: Union[bytes, str]) -> str:
    """Turn a raw read into text, dropping NUL padding and the kernel's trailing newline."""
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="replace")
    return raw.replace("\x00", "").strip()


def convert_temperature(sample: str, strict: bool = False) -> str:
    """
    Convert a milli-degree reading to degrees.

    Rendered with milli-degree precision, keeping at least two decimals:
    "36850" -> "36.85", "36855" -> "36.855", "-1250" -> "-1.25".

    The number of decimals varies (two or three) because one trailing zero is
    dropped; consumers expecting fixed-width values should parse the number
    rather than slice the text.

    An unparsable sample converts to "0.00". Downstream consumers cannot tell that
    apart from a real zero reading; pass strict=True to get a ValueError instead.
    """
    match = _LEADING_INT.match(sample)
    if match is None:
        if strict:
            raise ValueError(f"not a milli-degree reading: {sample!r}")
        logger.debug(f"Could not convert {sample!r}, reporting 0")
        millis = 0
    else:
        millis = int(match.group())

    whole, frac = divmod(abs(millis), 1000)
    sign = "-" if millis < 0 else ""
    text = f"{sign}{whole}.{frac:03d}"
    if text.endswith("0"):
        text = text[:-1]
    return text


def format_timestamp(now: Optional[float] = None) -> str:
    """Local time in asctime() layout, with the line terminator turned into a comma."""
    if now is None:
        now = time.time()
    stamp = time.asctime(time.localtime(now))
    return stamp.rstrip("\n") + ","


def format_reading(
    descriptor: SensorDescriptor,
    raw_sample: Union[bytes, str],
    now: Optional[float] = None,
    strict: bool = False,
) -> str:
    """
    Build the single-line payload for one reading:

        <timestamp>,<module>,<sensor-name>,<converted-value>

    Temperature samples are converted from milli-degrees; every other
    measurement type is passed through as read.
    """
    sample = decode_sample(raw_sample)
    if descriptor.measurement_type == TEMPERATURE:
        value = convert_temperature(sample, strict=strict)
        logger.log(TRACE, f"sensorData converted to {value}")
    else:
        value = sample

    return format_timestamp(now) + f"{descriptor.module},{descriptor.name},{value}"
