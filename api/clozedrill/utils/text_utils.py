"""
Text utility functions for building cloze prompts.
"""
import re
from typing import List

BLANK_MARKER = "___"

SENTENCE_TERMINATORS = ('.', '!', '?')

IRREGULAR_PLURALS = {
    'child': 'children', 'children': 'child',
    'man': 'men', 'men': 'man',
    'woman': 'women', 'women': 'woman',
    'person': 'people', 'people': 'person',
    'foot': 'feet', 'feet': 'foot',
    'tooth': 'teeth', 'teeth': 'tooth',
    'mouse': 'mice', 'mice': 'mouse',
    'goose': 'geese', 'geese': 'goose',
}


def clean_sentence(sentence: str) -> str:
    """
    Normalize an imported example sentence.

    Drops everything after a pipe (|), collapses runs of whitespace and
    appends a period when the sentence has no terminal punctuation.

    Args:
        sentence: Raw sentence text

    Returns:
        Cleaned sentence, or the input unchanged if it is empty
    """
    if not sentence:
        return sentence

    cleaned = sentence.strip()

    if '|' in cleaned:
        cleaned = cleaned.split('|')[0].strip()

    cleaned = re.sub(r'\s+', ' ', cleaned).strip()

    if cleaned and not cleaned.endswith(SENTENCE_TERMINATORS):
        cleaned += '.'

    return cleaned


def clean_word(word: str) -> str:
    """Trim and lower-case an imported answer word."""
    if not word:
        return word
    return word.strip().lower()


def generate_word_variations(word: str) -> List[str]:
    """
    Generate singular/plural forms of a word for blank matching.

    Covers the regular -s, -es and -y/-ies rules plus a short list of
    irregular plurals. The word itself is always first.

    Args:
        word: Word to inflect

    Returns:
        Unique lower-case variations in matching order
    """
    lower_word = word.lower()
    variations = [lower_word]

    if lower_word.endswith('s'):
        variations.append(lower_word[:-1])
    else:
        variations.append(lower_word + 's')

    if lower_word.endswith('es'):
        variations.append(lower_word[:-2])
    elif not lower_word.endswith('s'):
        variations.append(lower_word + 'es')

    if lower_word.endswith('ies'):
        variations.append(lower_word[:-3] + 'y')
    elif lower_word.endswith('y') and len(lower_word) > 1:
        variations.append(lower_word[:-1] + 'ies')

    if lower_word in IRREGULAR_PLURALS:
        variations.append(IRREGULAR_PLURALS[lower_word])

    # Preserve order, drop duplicates and empty stems
    seen = set()
    unique = []
    for variation in variations:
        if variation and variation not in seen:
            seen.add(variation)
            unique.append(variation)
    return unique


def _whole_word_pattern(term: str) -> re.Pattern:
    return re.compile(r'\b' + re.escape(term) + r'\b', re.IGNORECASE)


def blank_word(sentence: str, word: str) -> str:
    """
    Replace the first occurrence of ``word`` (or one of its variations) with the blank marker.

    An exact whole-word match is tried first, then the generated variations
    in order. The sentence is returned unchanged when nothing matches.
    """
    if not sentence or not word:
        return sentence

    for variation in generate_word_variations(clean_word(word)):
        blanked, count = _whole_word_pattern(variation).subn(BLANK_MARKER, sentence, count=1)
        if count:
            return blanked

    return sentence


def fill_blank(prompt: str, answer: str) -> str:
    """Put the answer back into a blanked prompt."""
    if not prompt:
        return prompt
    return prompt.replace(BLANK_MARKER, answer, 1)


def has_blank(prompt: str) -> bool:
    return bool(prompt) and BLANK_MARKER in prompt
