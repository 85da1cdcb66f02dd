"""Branch reference data and branch to partition routing.

Each branch keeps its transactions in its own partition. The mapping is a
fixed table over a closed set of partitions; nothing else in the package may
construct a partition name.
"""

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from coopledger.domain.entities import Branch
from coopledger.domain.errors import (
    BranchIdRequiredError,
    UnknownBranchError,
    UnknownPartitionError,
)


class Partition(str, Enum):
    """Physical ledger partitions, one per branch."""

    IBAAN = "ibaan_transactions"
    BAUAN = "bauan_transactions"
    SAN_JOSE = "sanjose_transactions"
    ROSARIO = "rosario_transactions"
    SAN_JUAN = "sanjuan_transactions"
    PADRE_GARCIA = "padregarcia_transactions"
    LIPA_CITY = "lipacity_transactions"
    BATANGAS_CITY = "batangascity_transactions"
    MABINI_LIPA = "mabinilipa_transactions"
    CALAMIAS = "calamias_transactions"
    LEMERY = "lemery_transactions"
    MATAAS_NA_KAHOY = "mataasnakahoy_transactions"
    TANAUAN = "tanauan_transactions"

    @classmethod
    def from_name(cls, name: object) -> "Partition":
        """Return the partition for a stored partition name."""
        if isinstance(name, Partition):
            return name
        try:
            return cls(name)
        except ValueError:
            raise UnknownPartitionError(name) from None


BRANCHES: tuple[Branch, ...] = (
    Branch(1, "Main Branch", "IBAAN", is_main=True),
    Branch(2, "Branch 2", "BAUAN"),
    Branch(3, "Branch 3", "SAN JOSE"),
    Branch(4, "Branch 4", "ROSARIO"),
    Branch(5, "Branch 5", "SAN JUAN"),
    Branch(6, "Branch 6", "PADRE GARCIA"),
    Branch(7, "Branch 7", "LIPA CITY"),
    Branch(8, "Branch 8", "BATANGAS CITY"),
    Branch(9, "Branch 9", "MABINI LIPA"),
    Branch(10, "Branch 10", "CALAMIAS"),
    Branch(11, "Branch 11", "LEMERY"),
    Branch(12, "Branch 12", "MATAAS NA KAHOY"),
    Branch(13, "Branch 13", "TANAUAN"),
)

BRANCH_PARTITIONS: Mapping[int, Partition] = MappingProxyType(
    {
        1: Partition.IBAAN,
        2: Partition.BAUAN,
        3: Partition.SAN_JOSE,
        4: Partition.ROSARIO,
        5: Partition.SAN_JUAN,
        6: Partition.PADRE_GARCIA,
        7: Partition.LIPA_CITY,
        8: Partition.BATANGAS_CITY,
        9: Partition.MABINI_LIPA,
        10: Partition.CALAMIAS,
        11: Partition.LEMERY,
        12: Partition.MATAAS_NA_KAHOY,
        13: Partition.TANAUAN,
    }
)


def _coerce_branch_id(branch_id: object) -> Optional[int]:
    if branch_id is None or isinstance(branch_id, bool):
        return None
    if isinstance(branch_id, int):
        return branch_id
    if isinstance(branch_id, str) and branch_id.strip().isdigit():
        return int(branch_id.strip())
    return None


class PartitionRouter:
    """Maps branch ids to their ledger partition."""

    def __init__(self, table: Optional[Mapping[int, Partition]] = None):
        """Initialize the router.

        Args:
            table: Branch id to partition mapping. Defaults to BRANCH_PARTITIONS.
        """
        self._table = MappingProxyType(dict(table if table is not None else BRANCH_PARTITIONS))
        self._branches = {branch.id: branch for branch in BRANCHES}

    def partition_for(self, branch_id: object) -> Partition:
        """Return the partition holding a branch's transactions.

        Raises:
            BranchIdRequiredError: If branch_id is None or blank
            UnknownBranchError: If branch_id is not in the branch table
        """
        if branch_id is None or (isinstance(branch_id, str) and not branch_id.strip()):
            raise BranchIdRequiredError()
        key = _coerce_branch_id(branch_id)
        if key is None or key not in self._table:
            raise UnknownBranchError(branch_id)
        return self._table[key]

    def branch_for(self, partition: Partition) -> int:
        """Return the branch id owning a partition."""
        for branch_id, candidate in self._table.items():
            if candidate is partition:
                return branch_id
        raise UnknownPartitionError(partition)

    def get_branch(self, branch_id: object) -> Branch:
        """Return branch reference data, validating the id like partition_for."""
        self.partition_for(branch_id)
        branch = self._branches.get(_coerce_branch_id(branch_id))
        if branch is None:
            raise UnknownBranchError(branch_id)
        return branch

    @property
    def partitions(self) -> tuple[Partition, ...]:
        """All routed partitions, in branch id order."""
        return tuple(self._table[key] for key in sorted(self._table))

    @property
    def branch_ids(self) -> tuple[int, ...]:
        return tuple(sorted(self._table))


_default_router = PartitionRouter()


def partition_for(branch_id: object) -> Partition:
    """Route a branch id through the default branch table."""
    return _default_router.partition_for(branch_id)
