"""SQLAlchemy ORM models for the CFS package transaction service."""

from cfs_core.models.base import Base  # noqa: F401
from cfs_core.models.audit_log import AuditLog  # noqa: F401
from cfs_core.models.cargo_package import CargoPackage  # noqa: F401
from cfs_core.models.container import Container  # noqa: F401
from cfs_core.models.package_movement import PackageMovement  # noqa: F401
from cfs_core.models.package_transaction import PackageTransaction, PackageTransactionItem  # noqa: F401
from cfs_core.models.packing_list import PackingList  # noqa: F401
