from __future__ import annotations

from cfs_core.models.enums import ContainerStatus, TransactionStatus
from cfs_core.services.aggregation import (
    PackageSnapshot,
    completion_blocker,
    completion_predicate,
    count_at_status,
    seal_eligibility,
    step_counts,
    terminal_status,
)
from cfs_core.workflow_engine.registry import BusinessFlowStep

DELIVERY_STEPS = (
    BusinessFlowStep("select", "STORED", "CHECKOUT"),
    BusinessFlowStep("inspect", "CHECKOUT", "CHECKED"),
    BusinessFlowStep("handover", "CHECKED", "DELIVERED"),
)


def _snapshots(*statuses):
    return [PackageSnapshot(f"pkg-{index}", status) for index, status in enumerate(statuses)]


def test_step_counts_report_packages_at_each_step_target() -> None:
    packages = _snapshots("CHECKOUT", "CHECKED", "CHECKED", "DELIVERED")

    assert step_counts(packages, DELIVERY_STEPS) == {"picked": 4, "select": 1, "inspect": 2, "handover": 1}
    assert count_at_status(packages, "CHECKED") == 2
    assert count_at_status(packages, None) == 0
    assert terminal_status(DELIVERY_STEPS) == "DELIVERED"


def test_completion_requires_every_picked_package_at_terminal_status() -> None:
    assert completion_predicate(_snapshots("DELIVERED", "DELIVERED", "DELIVERED"), DELIVERY_STEPS)
    assert not completion_predicate(_snapshots("DELIVERED", "CHECKED"), DELIVERY_STEPS)
    assert not completion_predicate(_snapshots("CHECKOUT", "CHECKOUT", "CHECKOUT"), DELIVERY_STEPS)


def test_completion_requires_at_least_one_package() -> None:
    assert not completion_predicate([], DELIVERY_STEPS)
    assert "Pick at least one package" in completion_blocker([], DELIVERY_STEPS)


def test_completion_blocker_reports_counts() -> None:
    blocker = completion_blocker(_snapshots("DELIVERED", "CHECKED", "STORED"), DELIVERY_STEPS)

    assert blocker.startswith("1 of 3 picked package(s) reached DELIVERED")


def test_seal_eligibility() -> None:
    done = TransactionStatus.DONE
    in_progress = TransactionStatus.IN_PROGRESS
    stuffed = {"PL-1": _snapshots("IN_CONTAINER"), "PL-2": _snapshots("IN_CONTAINER", "IN_CONTAINER")}

    assert seal_eligibility(ContainerStatus.STUFFING, {"PL-1": [done], "PL-2": [done, done]}, stuffed, "IN_CONTAINER").eligible
    assert not seal_eligibility(ContainerStatus.SEALED, {"PL-1": [done]}, stuffed, "IN_CONTAINER").eligible
    assert not seal_eligibility(ContainerStatus.PLANNED, {}, {}, "IN_CONTAINER").eligible

    missing = seal_eligibility(ContainerStatus.STUFFING, {"PL-1": [done], "PL-2": []}, stuffed, "IN_CONTAINER")
    assert not missing.eligible
    assert "PL-2" in missing.reason

    pending = seal_eligibility(ContainerStatus.STUFFING, {"PL-1": [done, in_progress]}, stuffed, "IN_CONTAINER")
    assert not pending.eligible
    assert "in progress" in pending.reason


def test_seal_eligibility_requires_every_package_stuffed() -> None:
    done = TransactionStatus.DONE

    partial = seal_eligibility(
        ContainerStatus.STUFFING,
        {"PL-1": [done]},
        {"PL-1": _snapshots("IN_CONTAINER", "STORED")},
        "IN_CONTAINER",
    )
    assert not partial.eligible
    assert partial.reason == "Only 1 of 2 package(s) of packing list PL-1 are IN_CONTAINER"

    empty = seal_eligibility(ContainerStatus.STUFFING, {"PL-1": [done]}, {"PL-1": []}, "IN_CONTAINER")
    assert not empty.eligible
    assert "no cargo packages" in empty.reason
