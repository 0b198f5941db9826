"""Enumerations shared by the CFS models and schemas."""

from __future__ import annotations

from enum import Enum


class TransactionStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class PartyType(str, Enum):
    FORWARDER = "FORWARDER"
    CONSIGNEE = "CONSIGNEE"
    SHIPPER = "SHIPPER"


class DestuffStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class ContainerStatus(str, Enum):
    PLANNED = "PLANNED"
    STUFFING = "STUFFING"
    STUFFED = "STUFFED"
    SEALED = "SEALED"


class ConditionStatus(str, Enum):
    NORMAL = "NORMAL"
    PACKAGE_DAMAGED = "PACKAGE_DAMAGED"
    CARGO_DAMAGED = "CARGO_DAMAGED"


class RegulatoryStatus(str, Enum):
    UNINSPECTED = "UNINSPECTED"
    PASSED = "PASSED"
    ON_HOLD = "ON_HOLD"


def enum_column_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]
