"""Consent gate for the Founder-Cofounder Agreement.

The gate admits generation only when every critical checklist item is
complete and every risky choice carries explicit founder consent. All
mutations are built on a copy, persisted, and only then swapped in, so a
failed write never leaves a half-applied agreement behind.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from local_storage.kv_store import AGREEMENT_KEY, KeyValueStore
from schemas.agreement import Agreement

from .errors import ConsentError

logger = logging.getLogger(__name__)


class ConsentGate:
    """Owns the current Agreement and every user-driven change to it.

    Supports:
    - Critical item toggles (gate re-evaluated immediately)
    - Optional item inclusion (advisory, never gates)
    - Atomic batch consent for risky choices
    """

    def __init__(
        self,
        agreement: Agreement | None = None,
        store: KeyValueStore | None = None,
    ) -> None:
        """Initialize consent gate.

        Args:
            agreement: Agreement to manage, or None until data is supplied
            store: Where agreement transitions are persisted
        """
        self._agreement = agreement
        self.store = store

    @staticmethod
    def can_proceed(agreement: Agreement | None) -> bool:
        """Whether generation may start for ``agreement``."""
        if agreement is None:
            return False
        return all(item.is_complete for item in agreement.critical_items) and all(
            risk.consent_granted for risk in agreement.risky_choices
        )

    @property
    def agreement(self) -> Agreement | None:
        return self._agreement

    @property
    def is_open(self) -> bool:
        return self.can_proceed(self._agreement)

    def snapshot(self) -> Agreement | None:
        """Deep copy of the agreement for read-only consumers."""
        if self._agreement is None:
            return None
        return self._agreement.model_copy(deep=True)

    def load(self, agreement: Agreement | None, persist: bool = True) -> None:
        """Replace the managed agreement.

        Args:
            agreement: New agreement (e.g. freshly evaluated or resumed)
            persist: Write it to the store as well
        """
        if persist and agreement is not None:
            self._persist(agreement)
        self._agreement = agreement

    def blocking_reasons(self) -> list[str]:
        """Human-readable list of what keeps the gate closed."""
        if self._agreement is None:
            return ["No agreement yet: supply project data first"]
        reasons = [
            f"Critical item incomplete: {item.id}" for item in self._agreement.incomplete_items()
        ]
        reasons.extend(
            f"Risk not acknowledged: {risk.id} ({risk.risk_level.value})"
            for risk in self._agreement.pending_risks()
        )
        return reasons

    def toggle_critical(self, item_id: str) -> bool:
        """Flip one critical item's completion.

        Args:
            item_id: ChecklistItem id

        Returns:
            Whether the gate is open after the toggle

        Raises:
            ConsentError: If there is no agreement or the id is unknown
        """
        current = self._require_agreement()
        updated = current.model_copy(deep=True)
        for item in updated.critical_items:
            if item.id == item_id:
                item.is_complete = not item.is_complete
                break
        else:
            raise ConsentError(f"Unknown critical item: {item_id}", [item_id])

        opened = self.can_proceed(updated)
        if opened and updated.timestamp is None:
            updated.timestamp = datetime.now()

        self._persist(updated)
        self._agreement = updated

        logger.info("Toggled critical item %s; gate %s", item_id, "open" if opened else "closed")
        return opened

    def toggle_optional(self, item_id: str) -> bool:
        """Flip one optional item's inclusion.

        Returns:
            The item's new ``is_included`` value

        Raises:
            ConsentError: If there is no agreement or the id is unknown
        """
        current = self._require_agreement()
        updated = current.model_copy(deep=True)
        for item in updated.optional_items:
            if item.id == item_id:
                item.is_included = not item.is_included
                included = item.is_included
                break
        else:
            raise ConsentError(f"Unknown optional item: {item_id}", [item_id])

        self._persist(updated)
        self._agreement = updated
        return included

    def grant_consent(self, risk_ids: Iterable[str]) -> Agreement:
        """Consent to a batch of risky choices as a single unit.

        Either every listed choice is consented or, on any error, none is.

        Args:
            risk_ids: RiskyChoice ids to consent to

        Returns:
            The updated agreement

        Raises:
            ConsentError: If the batch is empty or contains an unknown id
            StoreError: If persisting the updated agreement fails
        """
        current = self._require_agreement()
        ids = list(dict.fromkeys(risk_ids))
        if not ids:
            raise ConsentError("Consent batch is empty")

        known = {risk.id for risk in current.risky_choices}
        unknown = [rid for rid in ids if rid not in known]
        if unknown:
            raise ConsentError(f"Unknown risky choices: {', '.join(unknown)}", unknown)

        updated = current.model_copy(deep=True)
        by_id = {risk.id: risk for risk in updated.risky_choices}
        for rid in ids:
            risk = by_id[rid]
            if not risk.consent_granted:
                risk.consent_granted = True
                updated.risk_acknowledgments.append(rid)

        if updated.timestamp is None:
            updated.timestamp = datetime.now()

        self._persist(updated)
        self._agreement = updated

        logger.info("Consent granted for %s", ", ".join(ids))
        return updated

    def grant_all(self) -> Agreement:
        """Consent to every pending risky choice."""
        current = self._require_agreement()
        return self.grant_consent(risk.id for risk in current.pending_risks())

    def _require_agreement(self) -> Agreement:
        if self._agreement is None:
            raise ConsentError("No agreement available: supply project data first")
        return self._agreement

    def _persist(self, agreement: Agreement) -> None:
        if self.store is not None:
            self.store.set(AGREEMENT_KEY, agreement.model_dump(mode="json"))
