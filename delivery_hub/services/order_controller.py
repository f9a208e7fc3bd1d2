"""Order Status Controller: legal transitions plus their side effects.

Every client goes through this class instead of writing ``status`` directly.
Writes are conditional on the status that was read, so a concurrent change
surfaces as :class:`StaleOrderError` instead of being overwritten. Push
notifications and proof uploads are best-effort: their failures come back as
warnings and never undo the transition.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from delivery_hub.core.errors import (
    BlobUploadError,
    DataStoreError,
    InvalidTransitionError,
    MissingFieldError,
    NotificationError,
    OrderNotFoundError,
    PermissionDeniedError,
    StaleOrderError,
    ValidationError,
)
from delivery_hub.models import Order, User
from delivery_hub.services.audit_service import record_order_action
from delivery_hub.services.blob_storage import PROOF_BUCKET, BlobStorage
from delivery_hub.services.data_store import DataStore, order_to_row
from delivery_hub.services.eta import estimate_minutes, order_coordinates
from delivery_hub.services.notifications import OrderNotifier
from delivery_hub.services.order_status import (
    Actor,
    OrderEvent,
    SideEffect,
    Transition,
    actor_for_role,
    decide,
    is_terminal,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActorContext:
    user_id: int
    actor: Actor

    @classmethod
    def from_user(cls, user: User) -> ActorContext:
        return cls(user_id=user.id, actor=actor_for_role(user.role))


@dataclass(frozen=True)
class ProofPhoto:
    data: bytes
    extension: str = "jpg"


@dataclass
class TransitionResult:
    """``order`` is the live session object; ``row`` is frozen at the time of the write."""

    order: Order
    transition: Transition
    warnings: list[str] = field(default_factory=list)
    eta_minutes: int | None = None
    row: dict[str, Any] = field(default_factory=dict)


@dataclass
class ClaimResult:
    claimed: bool
    order: Order | None
    reason: str | None = None
    warnings: list[str] = field(default_factory=list)
    row: dict[str, Any] | None = None


def ensure_order_access(order: Order, ctx: ActorContext) -> None:
    """Who may act on or watch an order: admins always, everyone else only their own."""
    if ctx.actor == Actor.ADMIN:
        return
    if ctx.actor == Actor.RESTAURANT:
        if order.restaurant is None or order.restaurant.owner_id != ctx.user_id:
            raise PermissionDeniedError("Order belongs to another restaurant")
        return
    if ctx.actor == Actor.DRIVER:
        if order.driver_id != ctx.user_id:
            raise PermissionDeniedError("Order is not assigned to you")
        return
    if order.user_id != ctx.user_id:
        # Same answer as a missing order so ids of other customers do not leak.
        raise OrderNotFoundError(order.id)


class OrderStatusController:
    def __init__(self, store: DataStore, notifier: OrderNotifier, blob_storage: BlobStorage) -> None:
        self.store = store
        self.notifier = notifier
        self.blob_storage = blob_storage

    def _load(self, order_id: int) -> Order:
        order = self.store.read_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _upload_proof(self, order: Order, proof: ProofPhoto, warnings: list[str]) -> tuple[str, str] | None:
        """Return ``(key, public_url)`` of the stored photo, or ``None`` when the upload failed."""
        key = f"{order.id}/{uuid.uuid4().hex}.{proof.extension.lower().lstrip('.') or 'jpg'}"
        try:
            return key, self.blob_storage.upload_blob(PROOF_BUCKET, key, proof.data)
        except BlobUploadError as exc:
            logger.warning("[ORDER] proof upload failed order_id=%s: %s", order.id, exc.message)
            warnings.append(f"Proof photo was not saved: {exc.message}")
            return None

    def _discard_proof(self, order_id: int, key: str) -> None:
        try:
            self.blob_storage.delete_blob(PROOF_BUCKET, key)
        except BlobUploadError as exc:
            logger.warning("[ORDER] orphan proof left order_id=%s key=%s: %s", order_id, key, exc.message)

    def _fire_side_effects(self, transition: Transition, order: Order, warnings: list[str]) -> None:
        for effect in transition.side_effects:
            try:
                if effect == SideEffect.NOTIFY_CUSTOMER:
                    self.notifier.notify_customer(order)
                elif effect == SideEffect.NOTIFY_AFFECTED_PARTIES:
                    self.notifier.notify_affected_parties(order)
                elif effect == SideEffect.NOTIFY_ELIGIBLE_DRIVERS and order.driver_id is None:
                    self.notifier.notify_eligible_drivers(order)
                elif effect == SideEffect.PROMPT_RATING:
                    self.notifier.prompt_rating(order)
            except NotificationError as exc:
                logger.warning("[ORDER] %s failed order_id=%s: %s", effect.value, order.id, exc.message)
                warnings.append(f"Notification '{effect.value}' could not be sent")

    def apply_event(
        self,
        order_id: int,
        ctx: ActorContext,
        event: OrderEvent | str,
        *,
        reason: str | None = None,
        proof: ProofPhoto | None = None,
    ) -> TransitionResult:
        """Validate and apply ``event``; raise before any write when it is illegal."""
        if event == OrderEvent.CLAIM:
            raise ValidationError("Drivers claim orders through claim_order")

        order = self._load(order_id)
        ensure_order_access(order, ctx)
        transition = decide(order.status, ctx.actor, event)

        if transition.event == OrderEvent.CANCEL and not (reason or "").strip():
            raise MissingFieldError("cancellation_reason")

        before = order_to_row(order)
        now = datetime.now(timezone.utc)
        patch: dict[str, object] = {"status": transition.to_status.value, "updated_at": now}
        if SideEffect.RECORD_CANCELLATION in transition.side_effects:
            patch["cancelled_at"] = now
            patch["cancellation_reason"] = (reason or "").strip()

        warnings: list[str] = []
        proof_key: str | None = None
        if SideEffect.ATTACH_PROOF in transition.side_effects and proof is not None:
            stored = self._upload_proof(order, proof, warnings)
            if stored is not None:
                proof_key, patch["proof_of_delivery"] = stored

        try:
            affected = self.store.update_order(order.id, patch, precondition={"status": transition.from_status.value})
        except DataStoreError:
            if proof_key is not None:
                self._discard_proof(order_id, proof_key)
            raise
        if affected == 0:
            logger.info("[ORDER] stale write order_id=%s expected_status=%s", order_id, transition.from_status.value)
            if proof_key is not None:
                self._discard_proof(order_id, proof_key)
            raise StaleOrderError("Order changed meanwhile; refresh and try again")

        updated = self._load(order_id)
        logger.info(
            "[ORDER] order_id=%s %s -> %s by %s:%s",
            order_id,
            transition.from_status.value,
            transition.to_status.value,
            ctx.actor.value,
            ctx.user_id,
        )
        after = order_to_row(updated)
        self._fire_side_effects(transition, updated, warnings)
        record_order_action(
            self.store.db,
            actor_user_id=ctx.user_id,
            actor_role=ctx.actor.value,
            action=f"order_{transition.event.value}",
            order_id=order_id,
            before=before,
            after=after,
        )
        return TransitionResult(
            order=updated,
            transition=transition,
            warnings=warnings,
            eta_minutes=self.estimate_eta(updated),
            row=after,
        )

    def claim_order(self, order_id: int, ctx: ActorContext) -> ClaimResult:
        """Attach the driver to an unassigned order with a compare-and-swap write.

        Losing the race is an expected outcome, reported as ``claimed=False``.
        """
        if ctx.actor != Actor.DRIVER:
            raise PermissionDeniedError("Only drivers can claim orders")

        order = self._load(order_id)
        if is_terminal(order.status):
            raise InvalidTransitionError(order.status, OrderEvent.CLAIM.value, ctx.actor.value)
        if order.driver_id is not None:
            return ClaimResult(claimed=False, order=order, reason="already_taken", row=order_to_row(order))
        transition = decide(order.status, ctx.actor, OrderEvent.CLAIM)

        before = order_to_row(order)
        patch = {
            "driver_id": ctx.user_id,
            "status": transition.to_status.value,
            "updated_at": datetime.now(timezone.utc),
        }
        affected = self.store.update_order(
            order.id,
            patch,
            precondition={"driver_id": None, "status": transition.from_status.value},
        )
        current = self._load(order_id)
        if affected == 0:
            reason = "already_taken" if current.driver_id is not None else "status_changed"
            logger.info("[CLAIM] lost order_id=%s driver_id=%s reason=%s", order_id, ctx.user_id, reason)
            return ClaimResult(claimed=False, order=current, reason=reason, row=order_to_row(current))

        logger.info("[CLAIM] order_id=%s claimed by driver_id=%s", order_id, ctx.user_id)
        after = order_to_row(current)
        warnings: list[str] = []
        self._fire_side_effects(transition, current, warnings)
        record_order_action(
            self.store.db,
            actor_user_id=ctx.user_id,
            actor_role=ctx.actor.value,
            action="order_claim",
            order_id=order_id,
            before=before,
            after=after,
        )
        return ClaimResult(claimed=True, order=current, warnings=warnings, row=after)

    def reassign_driver(self, order_id: int, ctx: ActorContext, driver_id: int | None) -> Order:
        """Admin override of ``driver_id``; ``None`` releases the order back to the pool."""
        if ctx.actor != Actor.ADMIN:
            raise PermissionDeniedError("Only admins can reassign drivers")
        order = self._load(order_id)
        if is_terminal(order.status):
            raise InvalidTransitionError(order.status, "reassign", ctx.actor.value)
        if driver_id is not None:
            driver = self.store.db.get(User, driver_id)
            if driver is None or driver.role != "DRIVER" or not driver.is_active:
                raise ValidationError(f"User {driver_id} is not an active driver")

        before = order_to_row(order)
        affected = self.store.update_order(
            order.id,
            {"driver_id": driver_id, "updated_at": datetime.now(timezone.utc)},
            precondition={"status": order.status},
        )
        if affected == 0:
            raise StaleOrderError("Order changed meanwhile; refresh and try again")
        updated = self._load(order_id)
        record_order_action(
            self.store.db,
            actor_user_id=ctx.user_id,
            actor_role=ctx.actor.value,
            action="order_reassign_driver",
            order_id=order_id,
            before=before,
            after=order_to_row(updated),
        )
        return updated

    def estimate_eta(self, order: Order) -> int | None:
        restaurant, delivery = order_coordinates(order)
        return estimate_minutes(restaurant, delivery, order.status)
