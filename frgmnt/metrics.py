"""Transfer statistics for fragment copies."""

from __future__ import annotations

from dataclasses import dataclass

_THROUGHPUT_UNITS = ("B/s", "KB/s", "MB/s", "GB/s", "TB/s", "PB/s")


@dataclass(frozen=True)
class TransferStats:
    fragments: int
    duplicates: int
    total_bytes: int
    elapsed_seconds: float

    @property
    def deliveries(self) -> int:
        return self.fragments + self.duplicates

    @property
    def throughput_bytes_per_sec(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total_bytes / self.elapsed_seconds

    def to_dict(self) -> dict[str, float]:
        return {
            "fragments": float(self.fragments),
            "duplicates": float(self.duplicates),
            "total_bytes": float(self.total_bytes),
            "elapsed_seconds": float(self.elapsed_seconds),
            "throughput_bytes_per_sec": self.throughput_bytes_per_sec,
        }


def transfer_stats(
    fragments: int, duplicates: int, total_bytes: int, elapsed_seconds: float
) -> TransferStats:
    if fragments < 0:
        raise ValueError("fragments must be >= 0")
    if duplicates < 0:
        raise ValueError("duplicates must be >= 0")
    if total_bytes < 0:
        raise ValueError("total_bytes must be >= 0")
    if elapsed_seconds < 0:
        raise ValueError("elapsed_seconds must be >= 0")
    return TransferStats(
        fragments=fragments,
        duplicates=duplicates,
        total_bytes=total_bytes,
        elapsed_seconds=elapsed_seconds,
    )


def format_throughput(bytes_per_sec: float) -> str:
    value = max(bytes_per_sec, 0.0)
    unit_index = 0
    while value >= 1000.0 and unit_index < len(_THROUGHPUT_UNITS) - 1:
        value /= 1000.0
        unit_index += 1
    return f"{value:.2f}{_THROUGHPUT_UNITS[unit_index]}"
