"""Tests for branch to partition routing."""

import pytest

from coopledger.domain.branches import (
    BRANCHES,
    BRANCH_PARTITIONS,
    Partition,
    PartitionRouter,
    partition_for,
)
from coopledger.domain.errors import (
    BranchIdRequiredError,
    RoutingError,
    UnknownBranchError,
    UnknownPartitionError,
)


@pytest.mark.parametrize(
    "branch_id,expected",
    [
        (1, Partition.IBAAN),
        (2, Partition.BAUAN),
        (3, Partition.SAN_JOSE),
        (7, Partition.LIPA_CITY),
        (12, Partition.MATAAS_NA_KAHOY),
        (13, Partition.TANAUAN),
    ],
)
def test_partition_for_known_branches(branch_id, expected):
    assert partition_for(branch_id) is expected


def test_partition_names():
    assert partition_for(1).value == "ibaan_transactions"
    assert partition_for(3).value == "sanjose_transactions"
    assert partition_for(12).value == "mataasnakahoy_transactions"


def test_every_branch_has_its_own_partition():
    assert sorted(BRANCH_PARTITIONS) == list(range(1, 14))
    assert len(set(BRANCH_PARTITIONS.values())) == 13
    assert set(BRANCH_PARTITIONS.values()) == set(Partition)


def test_partition_for_accepts_digit_strings():
    assert partition_for("5") is Partition.SAN_JUAN
    assert partition_for(" 5 ") is Partition.SAN_JUAN


@pytest.mark.parametrize("branch_id", [None, "", "   "])
def test_partition_for_requires_branch_id(branch_id):
    with pytest.raises(BranchIdRequiredError, match="Branch ID is required for data access"):
        partition_for(branch_id)


@pytest.mark.parametrize("branch_id", [0, 14, 99, -1, "abc", True, 2.5])
def test_partition_for_rejects_unknown_branch(branch_id):
    with pytest.raises(UnknownBranchError, match="not found"):
        partition_for(branch_id)


def test_routing_errors_share_a_category():
    assert issubclass(BranchIdRequiredError, RoutingError)
    assert issubclass(UnknownBranchError, RoutingError)


def test_branch_for_inverts_partition_for():
    router = PartitionRouter()
    for branch_id in router.branch_ids:
        assert router.branch_for(router.partition_for(branch_id)) == branch_id


def test_router_partitions_in_branch_order():
    router = PartitionRouter()
    assert router.partitions[0] is Partition.IBAAN
    assert router.partitions[-1] is Partition.TANAUAN
    assert router.branch_ids == tuple(range(1, 14))


def test_router_with_custom_table():
    router = PartitionRouter({1: Partition.IBAAN, 2: Partition.BAUAN})

    assert router.partition_for(2) is Partition.BAUAN
    with pytest.raises(UnknownBranchError):
        router.partition_for(3)
    with pytest.raises(UnknownPartitionError):
        router.branch_for(Partition.TANAUAN)


def test_get_branch():
    router = PartitionRouter()

    main = router.get_branch(1)
    assert main.name == "Main Branch"
    assert main.location == "IBAAN"
    assert main.is_main
    assert not router.get_branch(13).is_main

    with pytest.raises(UnknownBranchError):
        router.get_branch(42)


def test_branch_reference_data_is_complete():
    assert [b.id for b in BRANCHES] == list(range(1, 14))
    assert sum(1 for b in BRANCHES if b.is_main) == 1


def test_partition_from_name():
    assert Partition.from_name("lemery_transactions") is Partition.LEMERY
    assert Partition.from_name(Partition.LEMERY) is Partition.LEMERY
    with pytest.raises(UnknownPartitionError):
        Partition.from_name("users")
