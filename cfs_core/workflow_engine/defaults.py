"""Business flows shipped with the service.

Overridable through ``CFS_FLOW_DEFINITIONS_FILE`` or replaced entirely by a
remote registry (``CFS_FLOW_REGISTRY_URL``).
"""

from __future__ import annotations

from typing import Any, Dict, List

STORED = "STORED"
CHECKOUT = "CHECKOUT"
CHECKED = "CHECKED"
DELIVERED = "DELIVERED"
IN_CONTAINER = "IN_CONTAINER"
DESTUFFED = "DESTUFFED"

WAREHOUSE_DELIVERY = "warehouseDelivery"
STUFFING_WAREHOUSE = "stuffingWarehouse"
DESTUFF_WAREHOUSE = "destuffWarehouse"

DEFAULT_FLOW_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": WAREHOUSE_DELIVERY,
        "direction": "import",
        "steps": [
            {"code": "select", "from_status": STORED, "to_status": CHECKOUT},
            {"code": "inspect", "from_status": CHECKOUT, "to_status": CHECKED},
            {"code": "handover", "from_status": CHECKED, "to_status": DELIVERED},
        ],
    },
    {
        "name": STUFFING_WAREHOUSE,
        "direction": "export",
        "steps": [
            {"code": "select", "from_status": STORED, "to_status": CHECKOUT},
            {"code": "inspect", "from_status": CHECKOUT, "to_status": CHECKED},
            {"code": "stuffing", "from_status": CHECKED, "to_status": IN_CONTAINER},
        ],
    },
    {
        "name": DESTUFF_WAREHOUSE,
        "direction": "import",
        "steps": [
            # Package creation belongs to intake; the engine reports it as not implemented.
            {"code": "create", "from_status": None, "to_status": DESTUFFED},
            {"code": "store", "from_status": DESTUFFED, "to_status": STORED},
        ],
    },
]
