from .gate import AutoApproveGate, ConfirmationGate, PromptGate
from .guard import BalanceCheck, BalanceGuard, OperatorDeclinedError, ZeroBalanceError

__all__ = [
    "AutoApproveGate",
    "BalanceCheck",
    "BalanceGuard",
    "ConfirmationGate",
    "OperatorDeclinedError",
    "PromptGate",
    "ZeroBalanceError",
]
