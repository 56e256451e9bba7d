"""
CSV import/export service for card pools.

Import format (header names are fixed):
    word,sentence,word_mean,sentence_translation

Export writes the same columns plus a ``tags`` column that marks mastered
cards, which flashcard tools such as Anki can map to note tags.
"""
import csv
import io
import logging
from typing import Iterable, List, Union

from pydantic import BaseModel, Field

from clozedrill.schemas.card import Card, MAX_PROGRESS
from clozedrill.services.migration_service import new_scheduling_metadata, synthesize_card_id
from clozedrill.utils.text_utils import (
    blank_word,
    clean_sentence,
    clean_word,
    fill_blank,
    has_blank,
)

logger = logging.getLogger(__name__)


IMPORT_COLUMNS = ['word', 'sentence', 'word_mean', 'sentence_translation']
EXPORT_COLUMNS = IMPORT_COLUMNS + ['tags']
MASTERED_TAG = 'mastered'


class ImportResult(BaseModel):
    """Outcome of a CSV import."""
    cards: List[Card] = Field(default_factory=list)
    total_rows: int = 0
    failed: int = Field(0, description="Rows dropped for a missing word or sentence")
    cleaned_sentences: int = 0
    pipe_cleaned: int = 0
    word_matched: int = Field(0, description="Rows whose sentence got a blank")

    @property
    def imported(self) -> int:
        return len(self.cards)


def _decode(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        return content.decode('utf-8-sig')
    return content.lstrip('\ufeff')


def _field(row: dict, name: str) -> str:
    value = row.get(name)
    return value.strip() if isinstance(value, str) else ''


def parse_cards_csv(content: Union[str, bytes]) -> ImportResult:
    """
    Turn CSV text into cards.

    Each valid row becomes one untouched card. Rows without a word or a
    sentence are dropped and counted in ``failed``; they never abort the
    import.

    Args:
        content: CSV text or UTF-8 bytes with a header row

    Returns:
        ImportResult with the cards and cleaning statistics
    """
    reader = csv.DictReader(io.StringIO(_decode(content)))
    if reader.fieldnames:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]

    result = ImportResult()

    for ordinal, row in enumerate(reader):
        # Blank lines are skipped by the reader; all-empty rows are not
        if not any((value or '').strip() for value in row.values() if isinstance(value, str)):
            continue

        result.total_rows += 1
        raw_word = _field(row, 'word')
        raw_sentence = row.get('sentence') if isinstance(row.get('sentence'), str) else ''

        if not raw_word or not raw_sentence.strip():
            result.failed += 1
            logger.info(f"Skipping CSV row {ordinal + 1}: missing word or sentence")
            continue

        sentence = clean_sentence(raw_sentence)
        if sentence != raw_sentence:
            result.cleaned_sentences += 1
            if '|' in raw_sentence:
                result.pipe_cleaned += 1

        word = clean_word(raw_word)
        prompt = blank_word(sentence, word)
        if has_blank(prompt):
            result.word_matched += 1

        result.cards.append(Card(
            id=synthesize_card_id(word, ordinal),
            prompt=prompt,
            answer=word,
            translation=_field(row, 'word_mean'),
            sentence_translation=_field(row, 'sentence_translation'),
            source_sentence=sentence,
            scheduling_metadata=new_scheduling_metadata(),
        ))

    logger.info(
        f"CSV import: {result.total_rows} rows, {result.imported} imported, {result.failed} failed, "
        f"{result.cleaned_sentences} cleaned ({result.pipe_cleaned} pipe), {result.word_matched} blanked"
    )
    return result


def _export_sentence(card: Card) -> str:
    if card.source_sentence:
        return card.source_sentence
    return fill_blank(card.prompt, card.answer)


def export_cards_csv(cards: Iterable[Card]) -> str:
    """Write cards as CSV, tagging mastered ones."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator='\n')
    writer.writerow(EXPORT_COLUMNS)

    for card in cards:
        writer.writerow([
            card.answer,
            _export_sentence(card),
            card.translation,
            card.sentence_translation,
            MASTERED_TAG if card.session_progress >= MAX_PROGRESS else '',
        ])

    return buffer.getvalue()


def export_mastered_csv(cards: Iterable[Card]) -> str:
    """Write only the mastered cards."""
    return export_cards_csv(card for card in cards if card.session_progress >= MAX_PROGRESS)
