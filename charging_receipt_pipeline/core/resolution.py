"""
Station resolution workflow.

After classification a draft is either settled right away (known station or
no station at all) or waits in DECIDING until the user picks one of the
three outcomes for an unknown station name.
"""

from .categorization import station_style
from .database import CategoryStoreError
from .models import (ExtractionDraft, StationDecision, Matched,
                     Unmatched, NoStationDetected, WorkflowState,
                     ResolutionOutcome, ResolutionResult)


class StationResolver:
    """Applies station decisions to drafts, creating categories on request."""

    def __init__(self, store, verbose: bool = False):
        self.store = store
        self.verbose = verbose

    def settle(self, draft: ExtractionDraft, decision: StationDecision) -> WorkflowState:
        """Apply a decision that needs no user input; Unmatched stays DECIDING."""
        if isinstance(decision, Matched):
            draft.station_name = decision.category.name
            return WorkflowState.RESOLVED
        if isinstance(decision, NoStationDetected):
            draft.station_name = None
            return WorkflowState.RESOLVED
        if isinstance(decision, Unmatched):
            return WorkflowState.DECIDING
        raise ValueError(f"Unknown station decision: {decision!r}")

    def resolve(self, draft: ExtractionDraft, decision: StationDecision,
                outcome: ResolutionOutcome) -> ResolutionResult:
        """
        Finish a pending ingestion with the user's choice.

        Args:
            draft: Draft returned with the pending decision
            decision: The Unmatched decision being answered
            outcome: CREATE_STATION, USE_EXISTING or CANCEL

        Returns:
            ResolutionResult; draft is None when cancelled
        """
        if not isinstance(decision, Unmatched):
            raise ValueError(f"No station decision pending for {decision!r}")

        if outcome is ResolutionOutcome.CANCEL:
            if self.verbose:
                print(f"  [DEBUG] Ingestion cancelled, draft discarded")
            return ResolutionResult(draft=None, state=WorkflowState.CANCELLED)

        if outcome is ResolutionOutcome.USE_EXISTING:
            draft.station_name = None
            return ResolutionResult(draft=draft, state=WorkflowState.RESOLVED)

        if outcome is ResolutionOutcome.CREATE_STATION:
            return self._create_station(draft, decision.candidate_name)

        raise ValueError(f"Unknown resolution outcome: {outcome!r}")

    def _create_station(self, draft: ExtractionDraft, name: str) -> ResolutionResult:
        color, icon = station_style(name)
        try:
            category = self.store.create_category(name, color, icon)
        except CategoryStoreError as e:
            print(f"[WARN] {e}")
            draft.station_name = None
            return ResolutionResult(draft=draft, state=WorkflowState.RESOLVED,
                                    warning=str(e))

        if self.verbose:
            print(f"  [DEBUG] Created station '{name}' ({color}, {icon}, sort {category.sort_order})")
        draft.station_name = name
        return ResolutionResult(draft=draft, state=WorkflowState.RESOLVED,
                                created_category=category)
