"""Destinations that receive each snapshot."""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class DeliveryMethod(Enum):
    """Supported snapshot delivery methods."""
    FILE_OUTPUT = "file"
    STDOUT = "stdout"


@dataclass(frozen=True)
class FileDeliveryConfig:
    """Snapshot file output."""
    output_path: str
    format: str = "jsonl"  # jsonl appends, json keeps only the latest snapshot
    create_dirs: bool = True


@dataclass(frozen=True)
class StdoutDeliveryConfig:
    """Snapshot stdout output."""
    format: str = "json"  # json, pretty
    include_history: bool = False


@dataclass(frozen=True)
class DeliveryDestination:
    """Named, switchable snapshot destination."""
    name: str
    method: DeliveryMethod
    config: Union[FileDeliveryConfig, StdoutDeliveryConfig]
    enabled: bool = True

    @classmethod
    def stdout(cls, format: str = "pretty", include_history: bool = False,
               name: str = "stdout") -> "DeliveryDestination":
        return cls(
            name=name,
            method=DeliveryMethod.STDOUT,
            config=StdoutDeliveryConfig(format=format, include_history=include_history),
        )

    @classmethod
    def file(cls, output_path: str, format: str = "jsonl", create_dirs: bool = True,
             name: str = "file") -> "DeliveryDestination":
        return cls(
            name=name,
            method=DeliveryMethod.FILE_OUTPUT,
            config=FileDeliveryConfig(output_path=output_path, format=format, create_dirs=create_dirs),
        )


def get_default_destinations() -> list[DeliveryDestination]:
    """A single pretty stdout destination."""
    return [DeliveryDestination.stdout()]
