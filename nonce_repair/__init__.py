from .repair import InvalidTargetNonceError, NonceRepairTool, RepairReport

__all__ = [
    "InvalidTargetNonceError",
    "NonceRepairTool",
    "RepairReport",
]
