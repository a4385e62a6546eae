"""Pack run parameters as a single dataclass."""

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class UnknownOptionPolicy(str, Enum):
    FAIL = "fail"
    IGNORE = "ignore"


@dataclass
class PackConfig:
    # --- directories ---
    source_directory: Path = Path(".")
    output_directory: Path = Path("build/assets")
    public_directory: Path | None = None  # None = do not publish

    # --- execution ---
    max_workers: int = 4
    lenient: bool = False
    unknown_options: UnknownOptionPolicy = UnknownOptionPolicy.FAIL

    # --- naming ---
    fingerprint_prefix_length: int = 16  # hex chars in versioned file names

    def __post_init__(self) -> None:
        self.source_directory = Path(self.source_directory)
        self.output_directory = Path(self.output_directory)
        if self.public_directory is not None:
            self.public_directory = Path(self.public_directory)
        self.unknown_options = UnknownOptionPolicy(self.unknown_options)

        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if not 8 <= self.fingerprint_prefix_length <= 64:
            raise ValueError(
                "fingerprint_prefix_length must be between 8 and 64, "
                f"got {self.fingerprint_prefix_length}"
            )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        for key in ("source_directory", "output_directory", "public_directory"):
            if d[key] is not None:
                d[key] = str(d[key])
        d["unknown_options"] = self.unknown_options.value
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "PackConfig":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
