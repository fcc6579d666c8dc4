"""Reference-order checks for refdir."""

from check.classifier import ReceiverContext, ReferenceClassifier
from check.driver import RunResult, run
from check.order import OrderChecker

__all__ = [
    "OrderChecker",
    "ReceiverContext",
    "ReferenceClassifier",
    "RunResult",
    "run",
]
