"""
Practice service: the scheduling coordinator.

Glues selection, per-card progress and the daily goal into the per-answer
protocol, and owns the in-memory card pool and goal state of one user
session. The in-memory state is authoritative for the session; the store is
a write-behind mirror that may lag or fail without rolling anything back.
"""
import logging
import random
import threading
from collections import Counter
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

from clozedrill.core.config import settings
from clozedrill.core.exceptions import ConflictError, PersistenceError
from clozedrill.models.enums import AnswerGrade, CardState
from clozedrill.schemas.card import Card
from clozedrill.schemas.goal import GoalState
from clozedrill.schemas.practice import AnswerOutcome, PersistResult, PracticeStats
from clozedrill.services.answer_service import grade_answer
from clozedrill.services.goal_service import (
    check_rollover,
    is_cycle_complete,
    local_today,
    new_goal_state,
    progress_percentage,
    record_correct_answer,
    reset_progress,
    set_goal as change_goal,
)
from clozedrill.services.migration_service import migrate, new_scheduling_metadata
from clozedrill.services.progress_service import apply_outcome, card_state, reset_card
from clozedrill.services.selection_service import get_active_cards, get_mastered_cards, select_next
from clozedrill.services.store_service import PracticeStore
from clozedrill.utils.text_utils import blank_word, clean_sentence

logger = logging.getLogger(__name__)


# (id, sentence, answer, translation, sentence translation)
DEFAULT_SEED_CARDS = [
    ('friends_001', "Friends are very important in life", "friends",
     "Arkadaşlar", "Arkadaşlar hayatta çok önemlidir."),
    ('exam_002', "She is studying for her exam", "exam",
     "Sınav", "O sınavı için çalışıyor."),
    ('groceries_003', "We need to buy some groceries", "groceries",
     "Market alışverişi", "Biraz market alışverişi yapmamız gerekiyor."),
]


def default_seed_pool() -> List[Card]:
    """Small built-in pool used when a user has no cards yet."""
    cards = []
    for card_id, sentence, answer, translation, sentence_translation in DEFAULT_SEED_CARDS:
        sentence = clean_sentence(sentence)
        cards.append(Card(
            id=card_id,
            prompt=blank_word(sentence, answer),
            answer=answer,
            translation=translation,
            sentence_translation=sentence_translation,
            source_sentence=sentence,
            scheduling_metadata=new_scheduling_metadata(),
        ))
    return cards


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PracticeCoordinator:
    """
    One user's practice session.

    Args:
        user_id: Owner of the pool and goal state
        store: Persistence adapter
        rng: Random source for card selection (tests pass a seeded Random)
        clock: Callable returning the current aware datetime
        seed_pool: Cards to start with when the stored pool is empty
        default_goal: Goal used for new users and invalid goal values
        timezone_name: IANA zone deciding the user's calendar day
    """

    def __init__(
        self,
        user_id: str,
        store: PracticeStore,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
        seed_pool: Optional[List[Card]] = None,
        default_goal: Optional[int] = None,
        timezone_name: Optional[str] = None,
    ):
        self.user_id = user_id
        self.store = store
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock or _utcnow
        self.seed_pool = seed_pool
        self.default_goal = default_goal or settings.default_target_goal
        self.timezone_name = timezone_name or settings.timezone

        self._pool: List[Card] = []
        self._goal: GoalState = new_goal_state(self._today(), self.default_goal)
        self._current: Optional[Card] = None
        self._complete = False
        self._seeded = False
        self._loaded = False
        # False until a load has actually read the store; writes are refused until then
        self._store_backed = False
        # Serializes mutations and store writes from request and background threads
        self._lock = threading.RLock()
        self.last_persist_error: Optional[str] = None

    # ------------------------------------------------------------------ #
    #  State accessors                                                     #
    # ------------------------------------------------------------------ #

    def _today(self, now: Optional[datetime] = None) -> date:
        return local_today(now or self.clock(), self.timezone_name)

    @property
    def pool(self) -> List[Card]:
        return list(self._pool)

    @property
    def goal_state(self) -> GoalState:
        self._sync_day()
        return self._goal

    @property
    def current_card(self) -> Optional[Card]:
        self._sync_day()
        return self._current

    @property
    def all_mastered(self) -> bool:
        return len(self._pool) > 0 and not get_active_cards(self._pool)

    @property
    def is_complete(self) -> bool:
        self._sync_day()
        return self._complete

    def _termination_reached(self) -> bool:
        return is_cycle_complete(self._goal) or self.all_mastered

    def _sync_day(self) -> None:
        """Apply the day rollover before any read or write of the goal."""
        rolled = check_rollover(self._goal, self._today())
        if rolled is self._goal:
            return
        self._goal = rolled
        # A cycle that ended on yesterday's goal is open again today
        if self._complete and not self._termination_reached():
            self._complete = False
            self._current = select_next(self._pool, rng=self.rng)

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _require_current(self) -> Card:
        self._ensure_loaded()
        self._sync_day()
        if self._complete:
            raise ConflictError("Practice cycle is complete; reset to continue")
        if self._current is None:
            raise ConflictError("No card available to practice")
        return self._current

    # ------------------------------------------------------------------ #
    #  Lifecycle                                                           #
    # ------------------------------------------------------------------ #

    def load(self) -> PersistResult:
        """
        Read pool and goal from the store and pick the first card.

        A store failure leaves the session usable in memory: it starts from
        the seed pool and a fresh goal, and the error is returned and
        remembered. Such a session never writes to the store, since its
        state did not come from there.
        """
        with self._lock:
            result = PersistResult(ok=True)
            try:
                pool = self.store.load_card_pool(self.user_id)
                goal = self.store.load_goal_state(self.user_id)
                self._store_backed = True
            except PersistenceError as e:
                logger.warning(f"Loading practice state for user {self.user_id} failed: {str(e)}")
                self.last_persist_error = str(e)
                self._store_backed = False
                result = PersistResult(ok=False, error=str(e))
                pool, goal = [], None

            today = self._today()
            self._seeded = not pool
            if self._seeded:
                seed = self.seed_pool if self.seed_pool is not None else default_seed_pool()
                pool = migrate(seed)
                logger.info(f"User {self.user_id} has no cards, seeded {len(pool)} default card(s)")

            self._pool = pool
            self._goal = check_rollover(goal or new_goal_state(today, self.default_goal), today)
            self._complete = self._termination_reached()
            self._current = None if self._complete else select_next(self._pool, rng=self.rng)
            self._loaded = True

            logger.info(
                f"Loaded practice session for user {self.user_id}: {len(self._pool)} card(s), "
                f"goal {self._goal.current_progress}/{self._goal.target_goal}"
            )
            return result

    @property
    def store_backed(self) -> bool:
        return self._store_backed

    def flush(self) -> PersistResult:
        """
        Write the current pool and goal snapshots to the store.

        Safe to call again after a failure; every call writes whole snapshots.
        Concurrent calls run one at a time and each snapshots the state it
        finds when it gets the lock, so the last write holds the newest state.
        """
        with self._lock:
            if not self._store_backed:
                self.last_persist_error = "Practice state was not loaded from the store; not saving"
                logger.warning(f"Refusing to persist practice state for user {self.user_id}: not loaded from the store")
                return PersistResult(ok=False, error=self.last_persist_error)

            pool = list(self._pool)
            goal = self._goal

            errors = []
            for saved in (self.store.save_card_pool(self.user_id, pool),
                          self.store.save_goal_state(self.user_id, goal)):
                if not saved.ok:
                    errors.append(saved.error or "unknown store error")

            if errors:
                self.last_persist_error = "; ".join(errors)
                logger.warning(f"Persisting practice state for user {self.user_id} failed: {self.last_persist_error}")
                return PersistResult(ok=False, error=self.last_persist_error)

            self.last_persist_error = None
            self._seeded = False
            return PersistResult(ok=True)

    def _persist(self, defer_persist: bool) -> Optional[PersistResult]:
        if defer_persist:
            return None
        return self.flush()

    # ------------------------------------------------------------------ #
    #  Answer protocol                                                     #
    # ------------------------------------------------------------------ #

    def answer(self, correct: bool, defer_persist: bool = False) -> AnswerOutcome:
        """
        Record a graded answer for the current card.

        Args:
            correct: True for an exact match, False for a far miss
            defer_persist: Leave the store write to a later ``flush()``

        Raises:
            ConflictError: If the cycle is complete or there is no card
        """
        with self._lock:
            card = self._require_current()
            grade = AnswerGrade.CORRECT if correct else AnswerGrade.WRONG
            return self._apply_answer(card, grade, defer_persist)

    def submit_answer(self, text: str, defer_persist: bool = False) -> AnswerOutcome:
        """
        Grade typed text against the current card and apply the outcome.

        A near miss is a free retry: nothing changes and the same card stays
        current.
        """
        with self._lock:
            card = self._require_current()
            grade = grade_answer(text, card.answer)

            if grade == AnswerGrade.NEAR_MISS:
                return AnswerOutcome(
                    grade=grade,
                    retry=True,
                    card=card,
                    goal=self._goal,
                    cycle_complete=False,
                    all_mastered=self.all_mastered,
                    next_card=card,
                )

            return self._apply_answer(card, grade, defer_persist)

    def _apply_answer(self, card: Card, grade: AnswerGrade, defer_persist: bool) -> AnswerOutcome:
        correct = grade == AnswerGrade.CORRECT
        now = self.clock()

        # 1-2. Daily goal: rollover first, then count correct answers only
        self._goal = check_rollover(self._goal, self._today(now))
        if correct:
            self._goal = record_correct_answer(self._goal, now, self.timezone_name)

        # 3. Card transition, swapped into the pool as a new value
        updated = apply_outcome(card, correct, now)
        self._pool = [updated if c.id == card.id else c for c in self._pool]

        # 4. Write-behind
        persist = self._persist(defer_persist)

        # 5-6. Termination
        all_mastered = self.all_mastered
        self._complete = is_cycle_complete(self._goal) or all_mastered

        # 7. Next card
        self._current = None if self._complete else select_next(self._pool, previous_id=card.id, rng=self.rng)

        if self._complete:
            logger.info(
                f"Practice cycle complete for user {self.user_id} "
                f"(goal {self._goal.current_progress}/{self._goal.target_goal}, all mastered: {all_mastered})"
            )

        return AnswerOutcome(
            grade=grade,
            card=updated,
            correct_answer=None if correct else card.answer,
            goal=self._goal,
            cycle_complete=self._complete,
            all_mastered=all_mastered,
            next_card=self._current,
            persist=persist,
        )

    # ------------------------------------------------------------------ #
    #  Pool and goal management                                            #
    # ------------------------------------------------------------------ #

    def reset(self, defer_persist: bool = False) -> Optional[PersistResult]:
        """Start a new cycle: clear every card's progress and today's count."""
        with self._lock:
            self._ensure_loaded()
            self._pool = [reset_card(card) for card in self._pool]
            self._goal = reset_progress(self._goal, self._today())
            self._complete = self._termination_reached()
            self._current = None if self._complete else select_next(self._pool, rng=self.rng)
            logger.info(f"Reset practice cycle for user {self.user_id} ({len(self._pool)} card(s))")
            return self._persist(defer_persist)

    def set_goal(self, goal, defer_persist: bool = False) -> Optional[PersistResult]:
        """Change the daily goal; today's count restarts from zero."""
        with self._lock:
            self._ensure_loaded()
            self._sync_day()
            self._goal = change_goal(self._goal, goal, self.default_goal)
            self._reopen_if_needed()
            return self._persist(defer_persist)

    def import_cards(self, cards: Iterable[Card], defer_persist: bool = False) -> Optional[PersistResult]:
        """
        Append cards to the pool.

        The built-in seed cards are replaced rather than kept, since they were
        never part of the user's stored pool. Colliding ids are re-synthesized.
        """
        with self._lock:
            self._ensure_loaded()
            base = [] if self._seeded else self._pool
            self._pool = migrate(base + list(cards))
            self._seeded = False
            if self._current is not None and all(card.id != self._current.id for card in self._pool):
                self._current = None
            self._reopen_if_needed()
            return self._persist(defer_persist)

    def _reopen_if_needed(self) -> None:
        self._complete = self._termination_reached()
        if self._complete:
            self._current = None
        elif self._current is None:
            self._current = select_next(self._pool, rng=self.rng)

    def stats(self) -> PracticeStats:
        self._ensure_loaded()
        goal = self.goal_state
        states = Counter(card_state(card) for card in self._pool)
        return PracticeStats(
            total=len(self._pool),
            active=len(get_active_cards(self._pool)),
            untouched=states[CardState.UNTOUCHED],
            in_progress=states[CardState.ACTIVE],
            mastered=len(get_mastered_cards(self._pool)),
            current_progress=goal.current_progress,
            target_goal=goal.target_goal,
            progress_percentage=progress_percentage(goal),
            goal_reached=is_cycle_complete(goal),
            all_mastered=self.all_mastered,
            cycle_complete=self._complete,
            store_backed=self.store_backed,
        )


class SessionRegistry:
    """
    Live coordinators by user id, created on first use.

    A session whose load failed is handed out but not kept, so the next
    request reads the store again.
    """

    def __init__(self, store: PracticeStore, **coordinator_kwargs):
        self.store = store
        self.coordinator_kwargs = coordinator_kwargs
        self._sessions: Dict[str, PracticeCoordinator] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> PracticeCoordinator:
        with self._lock:
            coordinator = self._sessions.get(user_id)
            if coordinator is None:
                coordinator = PracticeCoordinator(user_id, self.store, **self.coordinator_kwargs)
                if coordinator.load().ok:
                    self._sessions[user_id] = coordinator
            return coordinator
