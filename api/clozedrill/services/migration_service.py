"""
Card pool migration service.

Brings stored or imported card records up to the current Card shape. Older
records use camelCase keys and may lack ids, progress fields or scheduling
metadata; hand-edited records may hold out-of-range progress. Migration fills
the gaps, clamps what is out of range and leaves every other field alone, so
running it on an already migrated pool changes nothing.
"""
import logging
from typing import Any, Dict, Iterable, List, Mapping, Set, Union

from clozedrill.schemas.card import Card, MIN_PROGRESS, MAX_PROGRESS

logger = logging.getLogger(__name__)


SCHEDULING_METADATA_VERSION = 1

# Legacy camelCase key -> current field name
LEGACY_FIELD_MAP = {
    'sentence': 'prompt',
    'missingWord': 'answer',
    'sentenceTranslation': 'sentence_translation',
    'originalSentence': 'source_sentence',
    'sessionProgress': 'session_progress',
    'masteryLevel': 'mastery_level',
    'sessionCompleted': 'session_completed',
    'lastPracticed': 'last_practiced',
    'schedulingMetadata': 'scheduling_metadata',
    'fsrs': 'scheduling_metadata',
}

LegacyRecord = Union[Card, Mapping[str, Any]]


def new_scheduling_metadata() -> Dict[str, Any]:
    """
    Fresh long-horizon scheduling state for a card that has never been reviewed.

    The live selection path never reads these fields; they are carried for a
    future scheduler and must round-trip unchanged.
    """
    return {
        'version': SCHEDULING_METADATA_VERSION,
        'state': 'new',
        'stability': 0.0,
        'difficulty': 0.0,
        'elapsed_days': 0,
        'scheduled_days': 0,
        'reps': 0,
        'lapses': 0,
        'due': None,
        'last_review': None,
    }


def synthesize_card_id(answer: str, ordinal: int) -> str:
    """Deterministic id from the answer text and the record's position."""
    return f"{answer}_{ordinal}"


def _to_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except OverflowError:
        # Infinite floats from hand-edited JSON clamp to the nearest bound
        return MAX_PROGRESS if value > 0 else MIN_PROGRESS
    except (TypeError, ValueError):
        return default


def _clamp(value: int) -> int:
    return max(MIN_PROGRESS, min(MAX_PROGRESS, value))


def _rename_legacy_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    for legacy_key, field_name in LEGACY_FIELD_MAP.items():
        if legacy_key not in data:
            continue
        value = data.pop(legacy_key)
        # A current-style key always wins over its legacy spelling
        if field_name not in data or data[field_name] is None:
            data[field_name] = value
    return data


def migrate_record(record: LegacyRecord, ordinal: int) -> Card:
    """
    Migrate a single record.

    Args:
        record: Card, current-style dict or legacy camelCase dict
        ordinal: Zero-based position of the record, used for id synthesis

    Returns:
        Migrated Card
    """
    if isinstance(record, Card):
        data = record.model_dump()
    else:
        data = dict(record)

    data = _rename_legacy_fields(data)

    answer = data.get('answer')
    data['answer'] = '' if answer is None else str(answer)
    prompt = data.get('prompt')
    data['prompt'] = '' if prompt is None else str(prompt)

    card_id = data.get('id')
    if card_id is None or str(card_id).strip() == '':
        data['id'] = synthesize_card_id(data['answer'], ordinal)
    else:
        data['id'] = str(card_id)

    progress = _clamp(_to_int(data.get('session_progress'), MIN_PROGRESS))
    data['session_progress'] = progress
    data['session_completed'] = progress == MAX_PROGRESS

    mastery_level = _clamp(_to_int(data.get('mastery_level'), 0))
    if progress == MAX_PROGRESS:
        mastery_level = MAX_PROGRESS
    data['mastery_level'] = mastery_level

    for text_field in ('translation', 'sentence_translation'):
        if data.get(text_field) is None:
            data[text_field] = ''

    if not isinstance(data.get('scheduling_metadata'), dict):
        data['scheduling_metadata'] = new_scheduling_metadata()

    return Card.model_validate(data)


def _deduplicate_ids(cards: List[Card]) -> List[Card]:
    seen: Set[str] = set()
    result = []
    for ordinal, card in enumerate(cards):
        if card.id in seen:
            new_id = synthesize_card_id(card.answer, ordinal)
            suffix = ordinal
            while new_id in seen:
                suffix += len(cards)
                new_id = synthesize_card_id(card.answer, suffix)
            logger.warning(f"Duplicate card id {card.id} at position {ordinal} renamed to {new_id}")
            card = card.model_copy(update={'id': new_id})
        seen.add(card.id)
        result.append(card)
    return result


def migrate(records: Iterable[LegacyRecord]) -> List[Card]:
    """
    Migrate a whole pool.

    Missing ids are synthesized from answer and position, progress fields
    default to 0 and are clamped into range, scheduling metadata is created
    when absent, and ids are made unique within the pool. Idempotent.
    """
    cards = [migrate_record(record, ordinal) for ordinal, record in enumerate(records)]
    return _deduplicate_ids(cards)
