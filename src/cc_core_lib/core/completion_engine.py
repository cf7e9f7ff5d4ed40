"""Completion Engine - orchestrates roadmap completion, reversal and rewards.

The engine is the only writer of progress flags. Every completion follows
confirm-then-apply:

1. Validate ids against the catalog (NotFoundError, never retried)
2. Ask the ledger to award the unit (retried on ServiceUnavailableError)
3. Only after the ledger answered, mark the unit completed in the ProgressStore

A repeat award is not an error: the ledger returns granted=False and the
engine reports coins_earned=0 / already_completed=True.

Cascading completion: when the last substage of a stage is completed, the
stage bonus is awarded (once per stage for the lifetime of the ledger) and
the stage completion is recorded. If the bonus award fails, the substage stays
completed and the stage stays unrecorded, so retrying the same call finishes
the cascade.

Reversal resets progress and content only. Coins already granted are never
reclaimed, which keeps complete/revert/complete from farming coins.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from cc_core_lib.config import EngineSettings
from cc_core_lib.core.catalog import Catalog
from cc_core_lib.core.events import EventPublisher
from cc_core_lib.core.ledger import LedgerBackend
from cc_core_lib.core.phase_classifier import PhaseClassifier, rounded_percentage
from cc_core_lib.core.progress_store import ProgressStore
from cc_core_lib.exceptions import NotFoundError
from cc_core_lib.models import (
    AwardResult,
    CasePhase,
    CompletionResult,
    ConversionRecord,
    ConversionResult,
    DailyBonusResult,
    DomainEvent,
    EventType,
    LedgerEntry,
    PhaseProgress,
    ProgressSummary,
    Stage,
    StageDefinition,
    Substage,
    Wallet,
)
from cc_core_lib.utils.resilience import create_backend_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CompletionEngine:
    """Entry point used by the UI layer.

    Usage:
        engine = CompletionEngine(catalog=default_catalog(), ledger=InMemoryLedger())
        await engine.open_account("user-1")

        result = await engine.complete_substage("user-1", "complaint-filed", "cf-1")
        if result.coins_earned:
            ...  # celebrate
        phase = engine.current_phase("user-1")
    """

    def __init__(
        self,
        catalog: Catalog,
        ledger: LedgerBackend,
        progress_store: Optional[ProgressStore] = None,
        publisher: Optional[EventPublisher] = None,
        settings: Optional[EngineSettings] = None,
    ):
        if progress_store is not None and progress_store.catalog is not catalog:
            raise ValueError("progress_store must be built from the same catalog")

        calculator = ledger.bonus_calculator
        if settings is None:
            settings = calculator.settings if calculator is not None else EngineSettings()
        elif calculator is not None and calculator.settings.economy != settings.economy:
            raise ValueError(
                "ledger bonus_calculator settings differ from the engine's coin economy settings; "
                "build the ledger with BonusCalculator(settings)"
            )

        self.catalog = catalog
        self.ledger = ledger
        self.store = progress_store or ProgressStore(catalog)
        self.classifier = PhaseClassifier(catalog)
        self.publisher = publisher
        self.settings = settings

        self._retry = create_backend_retry(
            max_attempts=self.settings.award_retry_attempts,
            max_wait=self.settings.award_retry_max_wait,
        )
        # One lock per user seen, never evicted; scoped to this process
        self._user_locks: Dict[str, asyncio.Lock] = {}

        logger.info(
            f"Initialized {self.__class__.__name__} with ledger={ledger.service_name}, "
            f"stages={len(catalog.stages)}"
        )

    # ============================================================
    # Internals
    # ============================================================

    def _lock(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock

    async def _call_backend(self, fn: Callable[..., Awaitable[T]], *args: Any) -> T:
        return await self._retry(fn)(*args)

    def _phase(self, user_id: str) -> CasePhase:
        return self.classifier.current_phase(self.store.completed_substage_ids(user_id))

    def _require_case(self, user_id: str) -> None:
        if not self.store.has_case(user_id):
            raise NotFoundError("user", user_id, detail="account not opened")

    async def _record_stage_completion(
        self, user_id: str, stage: StageDefinition
    ) -> Optional[AwardResult]:
        """Award the stage bonus if every substage is done and it is not recorded yet"""
        if self.store.is_stage_completion_recorded(user_id, stage.id):
            return None
        if not self.store.completed_substage_ids(user_id).issuperset(stage.substage_ids):
            return None

        award = await self._call_backend(self.ledger.try_award, user_id, stage.id, stage.bonus_coins)
        self.store.set_stage_completed(user_id, stage.id, True)
        logger.info(
            f"Stage {stage.id} completed for user_id={user_id}, "
            f"bonus_granted={award.granted}, coins={award.coins_granted}"
        )
        return award

    async def _emit(self, events: List[DomainEvent]) -> None:
        if self.publisher is None:
            return
        for event in events:
            try:
                await self.publisher.publish(event)
            except Exception as e:
                logger.warning(
                    f"Failed to publish {event.type.value} event for user_id={event.user_id}: {e}"
                )

    @staticmethod
    def _phase_event(user_id: str, before: CasePhase, after: CasePhase) -> List[DomainEvent]:
        if before == after:
            return []
        logger.info(f"Phase changed for user_id={user_id}: {before.value} -> {after.value}")
        return [DomainEvent(
            type=EventType.PHASE_CHANGED, user_id=user_id, unit_id=after.value, phase=after
        )]

    # ============================================================
    # Account lifecycle
    # ============================================================

    async def open_account(self, user_id: str) -> Wallet:
        """Create the wallet and the case progress for a user (idempotent)"""
        wallet = await self._call_backend(self.ledger.open_wallet, user_id)
        self.store.start_case(user_id)
        return wallet

    # ============================================================
    # Completion & reversal
    # ============================================================

    async def complete_substage(self, user_id: str, stage_id: str, substage_id: str) -> CompletionResult:
        """Complete one substage, awarding its coins and any cascading stage bonus.

        Raises:
            NotFoundError: Unknown user/stage/substage, or substage not in stage
            ServiceUnavailableError: Ledger unreachable after retries (no flag applied)
        """
        substage = self.catalog.get_member_substage(stage_id, substage_id)
        stage = self.catalog.get_stage(stage_id)

        async with self._lock(user_id):
            self._require_case(user_id)
            phase_before = self._phase(user_id)
            already_completed = self.store.get_substage(user_id, substage_id).completed

            award = await self._call_backend(self.ledger.try_award, user_id, substage_id, substage.coins)
            self.store.set_substage_completed(user_id, substage_id, True)

            awards = [award]
            stage_award = await self._record_stage_completion(user_id, stage)
            if stage_award is not None:
                awards.append(stage_award)
            phase_after = self._phase(user_id)

        coins_earned = sum(item.coins_granted for item in awards)
        events = [DomainEvent(
            type=EventType.SUBSTAGE_COMPLETED,
            user_id=user_id,
            unit_id=substage_id,
            coins_earned=award.coins_granted,
            phase=phase_after,
        )]
        if stage_award is not None:
            events.append(DomainEvent(
                type=EventType.STAGE_COMPLETED,
                user_id=user_id,
                unit_id=stage_id,
                coins_earned=stage_award.coins_granted,
                phase=phase_after,
            ))
        events.extend(self._phase_event(user_id, phase_before, phase_after))
        await self._emit(events)

        logger.info(
            f"Substage {substage_id} completed for user_id={user_id}: "
            f"coins_earned={coins_earned}, already_completed={already_completed}"
        )
        return CompletionResult(
            user_id=user_id,
            stage_id=stage_id,
            substage_id=substage_id,
            coins_earned=coins_earned,
            stage_auto_completed=stage_award is not None,
            already_completed=already_completed,
            phase=phase_after,
            phase_changed=phase_before != phase_after,
            awards=awards,
        )

    async def complete_stage(self, user_id: str, stage_id: str) -> CompletionResult:
        """Mark an entire stage complete.

        Completes every incomplete substage exactly as complete_substage would,
        then records the stage once. Also the only way to complete a stage that
        has no substages.
        """
        stage = self.catalog.get_stage(stage_id)

        async with self._lock(user_id):
            self._require_case(user_id)
            phase_before = self._phase(user_id)
            already_completed = self.store.is_stage_completion_recorded(user_id, stage_id)

            awards: List[AwardResult] = []
            for substage in stage.substages:
                if self.store.get_substage(user_id, substage.id).completed:
                    continue
                already_completed = False
                award = await self._call_backend(
                    self.ledger.try_award, user_id, substage.id, substage.coins
                )
                self.store.set_substage_completed(user_id, substage.id, True)
                awards.append(award)

            stage_award = await self._record_stage_completion(user_id, stage)
            if stage_award is not None:
                awards.append(stage_award)
            phase_after = self._phase(user_id)

        events = [
            DomainEvent(
                type=EventType.SUBSTAGE_COMPLETED,
                user_id=user_id,
                unit_id=award.unit_id,
                coins_earned=award.coins_granted,
                phase=phase_after,
            )
            for award in awards if award.unit_id != stage_id
        ]
        if stage_award is not None:
            events.append(DomainEvent(
                type=EventType.STAGE_COMPLETED,
                user_id=user_id,
                unit_id=stage_id,
                coins_earned=stage_award.coins_granted,
                phase=phase_after,
            ))
        events.extend(self._phase_event(user_id, phase_before, phase_after))
        await self._emit(events)

        return CompletionResult(
            user_id=user_id,
            stage_id=stage_id,
            coins_earned=sum(award.coins_granted for award in awards),
            stage_auto_completed=stage_award is not None,
            already_completed=already_completed,
            phase=phase_after,
            phase_changed=phase_before != phase_after,
            awards=awards,
        )

    async def revert_stage(self, user_id: str, stage_id: str) -> Stage:
        """Reset a stage and its substages to incomplete and clear their content.

        Never touches the ledger or the wallet.
        """
        self.catalog.get_stage(stage_id)

        async with self._lock(user_id):
            self._require_case(user_id)
            phase_before = self._phase(user_id)
            self.store.reset_stage(user_id, stage_id)
            phase_after = self._phase(user_id)

        await self._emit(self._phase_event(user_id, phase_before, phase_after))
        return self.store.get_stage(user_id, stage_id)

    # ============================================================
    # Substage content & UI state
    # ============================================================

    async def enter_substage_data(
        self, user_id: str, stage_id: str, substage_id: str, value: Optional[str]
    ) -> Substage:
        """Store data for a DATA_ENTRY_REQUIRED substage (InvalidOperationError otherwise)"""
        self.catalog.get_member_substage(stage_id, substage_id)
        async with self._lock(user_id):
            self.store.set_substage_entered_data(user_id, substage_id, value)
        return self.store.get_substage(user_id, substage_id)

    async def attach_uploaded_file(
        self, user_id: str, stage_id: str, substage_id: str, file_ref: str
    ) -> Substage:
        """Attach an evidence-service file reference to an UPLOAD_REQUIRED substage.

        Completion does not require an attached file.
        """
        self.catalog.get_member_substage(stage_id, substage_id)
        async with self._lock(user_id):
            self.store.append_uploaded_file(user_id, substage_id, file_ref)
        logger.debug(f"File attached to {substage_id} for user_id={user_id}")
        return self.store.get_substage(user_id, substage_id)

    def set_stage_expanded(self, user_id: str, stage_id: str, expanded: bool) -> Stage:
        self.store.set_stage_expanded(user_id, stage_id, expanded)
        return self.store.get_stage(user_id, stage_id)

    # ============================================================
    # Coin economy
    # ============================================================

    async def claim_daily_bonus(self, user_id: str, today: Optional[date] = None) -> DailyBonusResult:
        """Claim today's streak bonus. A second claim the same day returns granted=False."""
        return await self._call_backend(self.ledger.claim_daily_bonus, user_id, today)

    async def convert_coins_to_credits(self, user_id: str, now: Optional[datetime] = None) -> ConversionResult:
        """Convert the largest allowed number of whole credits.

        Raises:
            InsufficientBalanceError: Less than one credit's worth of coins
            ConversionCapReachedError: Monthly cap already used up
        """
        return await self._call_backend(self.ledger.convert_to_credits, user_id, now)

    async def get_wallet(self, user_id: str) -> Wallet:
        return await self._call_backend(self.ledger.get_wallet, user_id)

    async def conversion_history(self, user_id: str) -> List[ConversionRecord]:
        return await self._call_backend(self.ledger.conversion_history, user_id)

    async def ledger_entries(self, user_id: str) -> List[LedgerEntry]:
        return await self._call_backend(self.ledger.list_entries, user_id)

    async def has_awarded(self, user_id: str, unit_id: str) -> bool:
        return await self._call_backend(self.ledger.has_awarded, user_id, unit_id)

    # ============================================================
    # Reads
    # ============================================================

    def current_phase(self, user_id: str) -> CasePhase:
        return self._phase(user_id)

    def phase_progress(self, user_id: str) -> PhaseProgress:
        return self.classifier.phase_progress(
            self.store.completed_substage_ids(user_id),
            self.store.completed_empty_stage_ids(user_id),
        )

    def get_stage(self, user_id: str, stage_id: str) -> Stage:
        return self.store.get_stage(user_id, stage_id)

    def get_substage(self, user_id: str, substage_id: str) -> Substage:
        return self.store.get_substage(user_id, substage_id)

    def list_stages(self, user_id: str) -> List[Stage]:
        return self.store.list_stages(user_id)

    async def progress_summary(self, user_id: str) -> ProgressSummary:
        """Roadmap-wide progress plus coins earned from roadmap units"""
        stages = self.store.list_stages(user_id)
        entries = await self.ledger_entries(user_id)

        current = next((stage for stage in stages if not stage.completed), stages[-1] if stages else None)
        completed_stages = sum(1 for stage in stages if stage.completed)

        return ProgressSummary(
            user_id=user_id,
            phase=self._phase(user_id),
            current_stage_id=current.id if current else None,
            current_stage_name=current.name if current else None,
            total_substages=sum(len(stage.substages) for stage in stages),
            completed_substages=sum(stage.completed_substage_count for stage in stages),
            total_stages=len(stages),
            completed_stages=completed_stages,
            coins_earned=sum(
                entry.coins_awarded for entry in entries if self.catalog.has_unit(entry.unit_id)
            ),
            percentage=rounded_percentage(completed_stages, len(stages)),
        )
