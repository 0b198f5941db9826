"""Step counts and completion gating derived from package snapshots.

Every function here is pure. Callers pass snapshots read from the package
rows during the same request, so a count can never outlive the step
execution that changed it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence

from cfs_core.models.enums import ContainerStatus, TransactionStatus
from cfs_core.workflow_engine.registry import BusinessFlowStep


@dataclass(frozen=True)
class PackageSnapshot:
    package_id: str
    position_status: Optional[str]


@dataclass(frozen=True)
class SealEligibility:
    eligible: bool
    reason: Optional[str] = None


def count_at_status(packages: Iterable[PackageSnapshot], status: Optional[str]) -> int:
    return sum(1 for package in packages if package.position_status == status)


def terminal_status(steps: Sequence[BusinessFlowStep]) -> Optional[str]:
    return steps[-1].to_status if steps else None


def step_counts(packages: Sequence[PackageSnapshot], steps: Sequence[BusinessFlowStep]) -> Dict[str, int]:
    """``picked`` plus, per step code, how many packages sit at that step's ``to_status``."""

    counts = {"picked": len(packages)}
    for step in steps:
        counts[step.code] = count_at_status(packages, step.to_status)
    return counts


def completion_blocker(packages: Sequence[PackageSnapshot], steps: Sequence[BusinessFlowStep]) -> Optional[str]:
    """Return why a transaction cannot complete, or ``None`` when it can."""

    picked = len(packages)
    if picked == 0:
        return "Pick at least one package before completing the transaction"
    finished = count_at_status(packages, terminal_status(steps))
    if finished != picked:
        return (
            f"{finished} of {picked} picked package(s) reached {terminal_status(steps)}; "
            "all picked packages must finish the flow before completing"
        )
    return None


def completion_predicate(packages: Sequence[PackageSnapshot], steps: Sequence[BusinessFlowStep]) -> bool:
    return completion_blocker(packages, steps) is None


def seal_eligibility(
    container_status: Optional[ContainerStatus],
    transactions_by_packing_list: Mapping[str, Sequence[TransactionStatus]],
    packages_by_packing_list: Mapping[str, Sequence[PackageSnapshot]],
    stuffed_status: Optional[str],
) -> SealEligibility:
    """A container may be sealed once every assigned packing list is fully stuffed.

    A packing list counts as stuffed when none of its stuffing transactions
    is still in progress and every one of its packages sits at
    ``stuffed_status``. A completed transaction only vouches for the packages
    it claimed, so the package rows decide.
    """

    if container_status == ContainerStatus.SEALED:
        return SealEligibility(False, "Container is already sealed")
    if not transactions_by_packing_list:
        return SealEligibility(False, "No packing lists are assigned to the container")

    for packing_list_code, statuses in transactions_by_packing_list.items():
        if not statuses:
            return SealEligibility(False, f"Packing list {packing_list_code} has no stuffing transaction")
        if any(status != TransactionStatus.DONE for status in statuses):
            return SealEligibility(False, f"Packing list {packing_list_code} has a stuffing transaction in progress")

        packages = packages_by_packing_list.get(packing_list_code, ())
        if not packages:
            return SealEligibility(False, f"Packing list {packing_list_code} has no cargo packages")
        stuffed = count_at_status(packages, stuffed_status)
        if stuffed != len(packages):
            return SealEligibility(
                False,
                f"Only {stuffed} of {len(packages)} package(s) of packing list {packing_list_code} are {stuffed_status}",
            )
    return SealEligibility(True)
