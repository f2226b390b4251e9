"""
Question normalizer.

Canonicalizes question text so differently written questions share a
cache key.

Sandi Metz Principles:
- Single Responsibility: Text normalization
- Small methods: Each step isolated
- Clear naming: Descriptive method names
"""

import re
import unicodedata
from collections import Counter
from typing import Dict, FrozenSet, List

from app.utils.hasher import hash_text
from app.utils.logger import get_logger

logger = get_logger(__name__)

ENGLISH_STOPWORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "the", "of", "in", "on", "at", "to", "for", "from", "by",
        "with", "into", "about", "as", "and", "or", "but", "if", "then",
        "that", "this", "these", "those", "there", "here",
        "is", "are", "was", "were", "be", "been", "being",
        "do", "does", "did", "have", "has", "had",
        "i", "me", "my", "you", "your", "we", "our", "us", "it", "its",
        "they", "their", "them", "he", "she", "his", "her",
        "what", "which", "who", "whom", "whose", "when", "where", "how",
        "can", "could", "would", "should", "will", "shall", "may", "might",
        "please", "tell", "show", "give", "also", "just", "only",
    }
)

PORTUGUESE_STOPWORDS: FrozenSet[str] = frozenset(
    {
        "o", "a", "os", "as", "um", "uma", "uns", "umas",
        "de", "da", "do", "das", "dos", "em", "no", "na", "nos", "nas",
        "por", "para", "com", "sem", "sob", "sobre",
        "e", "ou", "mas", "pois", "porque", "se", "que",
        "me", "te", "lhe", "vos", "lhes",
        "meu", "minha", "meus", "minhas", "teu", "tua", "teus", "tuas",
        "seu", "sua", "seus", "suas", "nosso", "nossa", "nossos", "nossas",
        "este", "esta", "estes", "estas", "esse", "essa", "esses", "essas",
        "aquele", "aquela", "aqueles", "aquelas", "isto", "isso", "aquilo",
        "qual", "quais", "quanto", "quanta", "quantos", "quantas",
        "onde", "quando", "como", "quem",
        "foi", "fez", "tem", "tinha", "ha", "havia", "houve",
        "ser", "estar", "ter", "haver", "fazer",
        "mais", "menos", "muito", "pouco", "todo", "toda", "todos", "todas",
        "outro", "outra", "outros", "outras", "mesmo", "mesma", "mesmos", "mesmas",
        "ja", "ainda", "tambem", "so", "apenas", "somente",
    }
)

# Every phrase contains a stopword ("and"/"e"), so a normalized string can
# never contain a phrase again after its tokens are sorted.
ENGLISH_NUMBER_WORDS: Dict[str, str] = {
    "two thousand and thirteen": "2013",
    "two thousand and fourteen": "2014",
    "two thousand and fifteen": "2015",
    "two thousand and sixteen": "2016",
    "two thousand and seventeen": "2017",
    "two thousand and eighteen": "2018",
    "two thousand and nineteen": "2019",
    "two thousand and twenty": "2020",
    "two thousand and twenty one": "2021",
    "two thousand and twenty two": "2022",
    "two thousand and twenty three": "2023",
    "two thousand and twenty four": "2024",
    "two thousand and twenty five": "2025",
}

PORTUGUESE_NUMBER_WORDS: Dict[str, str] = {
    "dois mil e treze": "2013",
    "dois mil e quatorze": "2014",
    "dois mil e quinze": "2015",
    "dois mil e dezesseis": "2016",
    "dois mil e dezessete": "2017",
    "dois mil e dezoito": "2018",
    "dois mil e dezenove": "2019",
    "dois mil e vinte": "2020",
    "dois mil e vinte e um": "2021",
    "dois mil e vinte e dois": "2022",
    "dois mil e vinte e tres": "2023",
    "dois mil e vinte e quatro": "2024",
    "dois mil e vinte e cinco": "2025",
}

_LEXICONS = {
    "en": (ENGLISH_STOPWORDS, ENGLISH_NUMBER_WORDS),
    "pt": (PORTUGUESE_STOPWORDS, PORTUGUESE_NUMBER_WORDS),
}

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


class TextNormalizer:
    """
    Normalizes question text for cache lookups.

    Performs, in order:
    - Lowercasing
    - Diacritic removal
    - Spelled-out year replacement
    - Punctuation removal
    - Whitespace collapsing
    - Stopword removal
    - Token sorting (only in normalize, not normalize_for_indexing)
    """

    def __init__(self, language: str = "en"):
        """
        Initialize normalizer.

        Args:
            language: Lexicon to use ("en" or "pt")

        Raises:
            ValueError: If language is not supported
        """
        if language not in _LEXICONS:
            raise ValueError(f"Unsupported language: {language}")

        self._language = language
        self._stopwords, number_words = _LEXICONS[language]
        self._number_words = number_words
        # Longest phrases first so "... twenty one" wins over "... twenty"
        phrases = sorted(number_words, key=len, reverse=True)
        self._number_pattern = re.compile(
            r"\b(" + "|".join(re.escape(p) for p in phrases) + r")\b"
        )

    @property
    def language(self) -> str:
        """Get lexicon language."""
        return self._language

    def normalize(self, text: str) -> str:
        """
        Normalize text for hashing and embedding.

        Args:
            text: Raw question text

        Returns:
            Canonical form with sorted tokens
        """
        tokens = self._tokens(text)
        return " ".join(sorted(tokens))

    def normalize_for_indexing(self, text: str) -> str:
        """
        Normalize text without reordering tokens.

        Used for keyword extraction only, never for hashing.

        Args:
            text: Raw text

        Returns:
            Normalized text in original word order
        """
        return " ".join(self._tokens(text))

    def hash(self, text: str) -> str:
        """
        Generate cache key for text.

        Args:
            text: Raw question text

        Returns:
            Hex SHA-256 of the normalized text
        """
        return hash_text(self.normalize(text))

    def extract_keywords(self, text: str, max_keywords: int = 5) -> List[str]:
        """
        Extract the most frequent meaningful words.

        Args:
            text: Raw text
            max_keywords: Maximum keywords to return

        Returns:
            Keywords ordered by frequency, then alphabetically
        """
        words = self.normalize_for_indexing(text).split()
        frequency = Counter(word for word in words if len(word) >= 3)
        ranked = sorted(frequency.items(), key=lambda item: (-item[1], item[0]))
        return [word for word, _ in ranked[:max_keywords]]

    def jaccard_similarity(self, text1: str, text2: str) -> float:
        """
        Calculate word-set overlap between two texts.

        Args:
            text1: First text
            text2: Second text

        Returns:
            Jaccard index (0.0 to 1.0)
        """
        words1 = set(self.normalize(text1).split())
        words2 = set(self.normalize(text2).split())

        if not words1 and not words2:
            return 1.0
        if not words1 or not words2:
            return 0.0

        return len(words1 & words2) / len(words1 | words2)

    def _tokens(self, text: str) -> List[str]:
        """
        Run the shared normalization steps.

        Args:
            text: Raw text

        Returns:
            Remaining tokens in original order
        """
        if not text or not text.strip():
            return []

        normalized = text.lower()
        # Compatibility decomposition can reintroduce capitals (e.g. "ℌ")
        normalized = self._remove_diacritics(normalized).lower()
        normalized = self._replace_number_words(normalized)
        normalized = _PUNCTUATION.sub(" ", normalized)
        normalized = _WHITESPACE.sub(" ", normalized).strip()

        return [word for word in normalized.split(" ") if word and word not in self._stopwords]

    def _remove_diacritics(self, text: str) -> str:
        """
        Remove accents and other combining marks.

        Args:
            text: Text to process

        Returns:
            Text without combining marks
        """
        decomposed = unicodedata.normalize("NFKD", text)
        stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
        return unicodedata.normalize("NFC", stripped)

    def _replace_number_words(self, text: str) -> str:
        """
        Replace spelled-out years with digits.

        Args:
            text: Lowercased text

        Returns:
            Text with digits for known phrases
        """
        return self._number_pattern.sub(
            lambda match: self._number_words[match.group(1)], text
        )


_default_normalizer = TextNormalizer()


# Convenience functions
def normalize_text(text: str) -> str:
    """
    Normalize text with the default English normalizer.

    Args:
        text: Raw text

    Returns:
        Normalized text
    """
    return _default_normalizer.normalize(text)


def generate_cache_key(text: str) -> str:
    """
    Generate cache key with the default English normalizer.

    Args:
        text: Raw question text

    Returns:
        Hex SHA-256 of the normalized text
    """
    return _default_normalizer.hash(text)
