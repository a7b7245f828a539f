"""
Health and attention scoring.

Every entity uses the same heuristic: start from a base score and subtract a
penalty per pending and per in-progress work order, floored at zero. The
penalties come from settings through ``HealthPolicy`` so deployments can tune
them without touching the builders.
"""

from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from marinaops.config import Settings

from .aggregation import count_where
from .classifiers import is_in_progress, is_pending


class HealthPolicy(BaseModel):
    """
    Tunables for health scoring and attention flags.

    Attributes:
        base_score: Score of an entity with no open work
        pending_penalty: Deducted per pending work order
        in_progress_penalty: Deducted per in-progress work order
        expiry_warning_days: Days before end date a contract is "expiring soon"
    """

    model_config = ConfigDict(frozen=True)

    base_score: float = Field(default=100.0, ge=0)
    pending_penalty: float = Field(default=10.0, ge=0)
    in_progress_penalty: float = Field(default=5.0, ge=0)
    expiry_warning_days: int = Field(default=30, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HealthPolicy":
        return cls(
            base_score=settings.health_base_score,
            pending_penalty=settings.health_pending_penalty,
            in_progress_penalty=settings.health_in_progress_penalty,
            expiry_warning_days=settings.contract_expiry_warning_days,
        )


DEFAULT_POLICY = HealthPolicy()


def health_score(
    pending_count: int,
    in_progress_count: int,
    policy: Optional[HealthPolicy] = None,
) -> float:
    """
    Score in ``[0, base_score]``.

    Example:
        >>> health_score(pending_count=2, in_progress_count=1)
        75.0
    """
    policy = policy or DEFAULT_POLICY
    score = (
        policy.base_score
        - policy.pending_penalty * pending_count
        - policy.in_progress_penalty * in_progress_count
    )
    return max(0.0, float(score))


def work_order_health(
    work_orders: Optional[Iterable[Any]],
    policy: Optional[HealthPolicy] = None,
) -> float:
    """Health score from a work-order collection."""
    items = list(work_orders or [])
    return health_score(
        count_where(items, is_pending),
        count_where(items, is_in_progress),
        policy,
    )


def needs_attention(
    *,
    is_active: bool = True,
    is_online: bool = True,
    open_work_orders: int = 0,
    outstanding_invoices: int = 0,
) -> bool:
    """
    OR of the attention signals.

    Builders pass only the signals that apply to their entity; the defaults
    are the "nothing wrong" values.
    """
    return (
        not is_active
        or not is_online
        or open_work_orders > 0
        or outstanding_invoices > 0
    )
