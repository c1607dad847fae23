"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
import re
from datetime import datetime

_SIZE_RE = re.compile(r"^(?P<value>-?\d+(?:\.\d+)?)\s*(?P<prefix>[KMGTP]?)B?$")
_PREFIX_POWERS = {"": 0, "K": 1, "M": 2, "G": 3, "T": 4, "P": 5}
_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.50KB, 3.20MB).
        """
        if size_bytes < 0:
            return "0B"

        value = float(size_bytes)
        for unit in _UNITS:
            if value < 1024:
                return f"{value:.2f}{unit}"
            value /= 1024
        return f"{value:.2f}EB"

    @staticmethod
    def human_to_bytes(size_str) -> int:
        """
        Convert a size such as '64K', '1.5GB' or '2048' to bytes (binary multiples).
        Raises ValueError for negative sizes or invalid formats.
        """
        text = str(size_str).strip().upper()
        match = _SIZE_RE.match(text)
        if match is None:
            raise ValueError(
                f"Invalid size format: '{size_str}'. "
                f"Supported formats: 1.5GB, 2048KB, 1000, 1K, 1M, etc."
            )

        value = float(match["value"])
        if value < 0:
            raise ValueError(f"Negative size not allowed: '{size_str}'")
        return int(value * 1024 ** _PREFIX_POWERS[match["prefix"]])

    @staticmethod
    def datetime_to_human(value: datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
        """Render an aware datetime in local time."""
        return value.astimezone().strftime(fmt)
