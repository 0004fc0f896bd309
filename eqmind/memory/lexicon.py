"""Emotion lexicon: label → axis weights and the codes it is difficult for."""

from loguru import logger

from eqmind.errors import EmotionExistsError, EmotionNotFoundError, RecordValidationError
from eqmind.memory.store import RecordStore
from eqmind.memory.types import NEUTRAL, EmotionDefinition

# label, category, (E/I, S/N, T/F, J/P), shadow-for codes
SEED_EMOTIONS: list[tuple[str, str, tuple[int, int, int, int], str | None]] = [
    ("neutral", "neutral", (0, 0, 0, 0), None),
    ("happy", "positive", (-5, 5, 15, 5), None),
    ("sad", "negative", (10, 10, 20, -5), "ESTJ,ENTJ"),
    ("angry", "negative", (-10, -5, -15, -10), "INFP,INFJ"),
    ("anxious", "negative", (15, -5, 10, -15), None),
    ("peaceful", "positive", (15, 10, 10, 10), None),
    ("curious", "positive", (0, 25, 5, 15), None),
    ("grateful", "positive", (5, 5, 25, 0), None),
    ("frustrated", "negative", (-5, -10, -10, -20), None),
    ("excited", "positive", (-15, 15, 10, 10), "ISTJ,INTJ"),
    ("tender", "positive", (15, 15, 35, 5), None),
    ("protective", "positive", (5, 0, 20, -5), None),
    ("aching", "mixed", (20, 15, 30, 5), None),
    ("playful", "positive", (-10, 10, 15, 20), None),
    ("grounded", "positive", (10, -5, 5, -10), None),
    ("present", "positive", (10, 5, 15, 5), None),
    ("connected", "positive", (-5, 10, 25, 5), None),
    ("proud", "positive", (0, 5, 15, 0), None),
    ("overwhelmed", "negative", (15, 5, 15, 5), None),
    ("content", "positive", (10, 0, 15, 0), None),
    ("loving", "positive", (5, 10, 35, 5), "INTP,ISTP"),
    ("hurt", "negative", (15, 10, 25, 5), "ESTJ,ENTJ"),
    ("affectionate", "positive", (-5, 5, 30, 10), "INTP,INTJ"),
    ("vulnerable", "mixed", (15, 15, 25, 10), "ESTJ,ENTJ,ISTJ"),
    ("determined", "positive", (0, 5, -5, -15), None),
    ("soft", "positive", (15, 10, 30, 10), None),
    ("fierce", "mixed", (-10, 5, 5, -10), None),
    ("yearning", "mixed", (15, 20, 30, 10), None),
]


def normalize_label(label: str | None) -> str:
    return (label or NEUTRAL).strip().lower() or NEUTRAL


def _codes(shadow_for) -> frozenset[str]:
    if not shadow_for:
        return frozenset()
    if isinstance(shadow_for, str):
        shadow_for = shadow_for.split(",")
    return frozenset(code.strip().upper() for code in shadow_for if code and code.strip())


class EmotionLexicon:
    """
    Shared reference table of emotion labels.

    Novel labels are created on first use with all-zero weights and stay
    uncalibrated until an operator calls ``calibrate``. Entries are never
    deleted.
    """

    def __init__(self, store: RecordStore, seed: bool = True):
        self.store = store
        if seed:
            self._seed()

    def _seed(self) -> None:
        added = 0
        for label, category, weights, shadow in SEED_EMOTIONS:
            emotion = EmotionDefinition(label=label, axis_weights=weights, shadow_for=_codes(shadow), category=category)
            if self.store.insert_emotion(emotion, ignore_existing=True):
                added += 1
        if added:
            logger.debug(f"Seeded {added} emotions into the lexicon")

    def get(self, label: str) -> EmotionDefinition | None:
        return self.store.get_emotion(normalize_label(label))

    def require(self, label: str) -> EmotionDefinition:
        emotion = self.get(label)
        if emotion is None:
            raise EmotionNotFoundError(f"'{normalize_label(label)}' is not in the vocabulary")
        return emotion

    def get_or_create(self, label: str) -> tuple[EmotionDefinition, bool]:
        """Return the entry for ``label``, creating an uncalibrated one if needed."""
        label = normalize_label(label)
        existing = self.store.get_emotion(label)
        if existing is not None:
            return existing, False
        created = self.store.insert_emotion(
            EmotionDefinition(label=label, is_user_defined=True), ignore_existing=True
        )
        if created:
            logger.info(f"New emotion '{label}' added to vocabulary (needs calibration)")
        return self.store.get_emotion(label), created

    def add(
        self,
        label: str,
        axis_weights: tuple[int, int, int, int] = (0, 0, 0, 0),
        shadow_for=None,
        category: str = NEUTRAL,
        definition: str | None = None,
    ) -> EmotionDefinition:
        label = normalize_label(label)
        if len(axis_weights) != 4:
            raise RecordValidationError("axis_weights needs exactly four values")
        emotion = EmotionDefinition(
            label=label,
            axis_weights=tuple(int(w) for w in axis_weights),
            shadow_for=_codes(shadow_for),
            category=category,
            definition=definition,
            is_user_defined=True,
        )
        if not self.store.insert_emotion(emotion, ignore_existing=True):
            raise EmotionExistsError(f"'{label}' is already in the vocabulary; use calibrate to change it")
        return self.store.get_emotion(label)

    def calibrate(
        self,
        label: str,
        axis_weights: tuple[int | None, int | None, int | None, int | None] | None = None,
        shadow_for=None,
        category: str | None = None,
        definition: str | None = None,
    ) -> EmotionDefinition:
        """
        Partially update an entry. ``None`` leaves a field untouched; pass an
        empty list for ``shadow_for`` to clear it.
        """
        label = normalize_label(label)
        self.require(label)

        columns: dict = {}
        if axis_weights is not None:
            for column, value in zip(("e_i_score", "s_n_score", "t_f_score", "j_p_score"), axis_weights):
                if value is not None:
                    columns[column] = int(value)
        if shadow_for is not None:
            columns["is_shadow_for"] = ",".join(sorted(_codes(shadow_for))) or None
        if category is not None:
            columns["category"] = category
        if definition is not None:
            columns["definition"] = definition

        if columns:
            self.store.update_emotion(label, **columns)
            logger.info(f"Calibrated '{label}': {', '.join(columns)}")
        return self.store.get_emotion(label)

    def record_usage(self, label: str) -> None:
        self.store.increment_emotion_usage(normalize_label(label))

    def list_entries(self, limit: int = 30) -> list[EmotionDefinition]:
        return self.store.list_emotions(limit=limit)
