"""
Equivalence validator.

Asks the LLM whether two questions request the same information before a
semantic cache hit is served.

Sandi Metz Principles:
- Single Responsibility: Question equivalence checks
- Small methods: Prompt building and reply classification isolated
- Dependency Injection: LLM provider injected
"""

import asyncio
import re
import unicodedata
from enum import Enum
from typing import Optional

from app.config import config
from app.exceptions import LLMProviderError
from app.llm.provider import BaseLLMProvider
from app.utils.logger import get_logger

logger = get_logger(__name__)

AFFIRMATIVE_TOKENS = frozenset({"yes", "sim"})
NEGATIVE_TOKENS = frozenset({"no", "nao", "not"})

_WORD = re.compile(r"[a-z]+")

VALIDATION_PROMPT = """You are a question validator. Decide whether the two questions below ask for EXACTLY the same information.

IMPORTANT:
- Answer ONLY "YES" or "NO"
- "YES" = the questions ask for the same thing, even if worded differently
- "NO" = the questions ask for different things, even if they look similar

Examples:
- "How many cases in 2021?" vs "What is the total number of cases in 2021?" -> YES
- "Compare men and women" vs "Difference between sexes" -> YES
- "Cases from 2021 to 2023" vs "Cases from 2021 to 2024" -> NO
- "Top 5 regions" vs "Top 10 regions" -> NO

Question 1: {question_a}
Question 2: {question_b}

Answer:"""


class ValidationOutcome(str, Enum):
    """Validator verdict."""

    EQUIVALENT = "equivalent"
    NOT_EQUIVALENT = "not_equivalent"
    UNKNOWN = "unknown"


class EquivalenceValidator:
    """
    LLM-backed question equivalence check.

    Anything other than a clear "yes" counts as not equivalent.
    """

    def __init__(
        self,
        llm_provider: BaseLLMProvider,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize validator.

        Args:
            llm_provider: Provider used for the check
            timeout_seconds: Timeout for one check (defaults to config)
        """
        self._llm_provider = llm_provider
        self._timeout = (
            timeout_seconds
            if timeout_seconds is not None
            else config.validation_timeout_seconds
        )

    async def validate(self, question_a: str, question_b: str) -> ValidationOutcome:
        """
        Ask the LLM whether two questions are equivalent.

        Args:
            question_a: Incoming question
            question_b: Cached question

        Returns:
            Validation outcome; errors and timeouts give UNKNOWN
        """
        prompt = VALIDATION_PROMPT.format(question_a=question_a, question_b=question_b)

        try:
            response = await asyncio.wait_for(
                self._llm_provider.generate(prompt, history=[]),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Equivalence validation timed out", timeout=self._timeout)
            return ValidationOutcome.UNKNOWN
        except LLMProviderError as e:
            logger.warning("Equivalence validation failed", error=str(e))
            return ValidationOutcome.UNKNOWN
        except Exception as e:
            logger.error("Unexpected validation error", error=str(e))
            return ValidationOutcome.UNKNOWN

        outcome = self.classify(response.content)
        logger.debug(
            "Equivalence validated",
            reply=response.content.strip()[:50],
            outcome=outcome.value,
        )
        return outcome

    async def are_equivalent(self, question_a: str, question_b: str) -> bool:
        """
        Check if two questions are equivalent.

        Args:
            question_a: Incoming question
            question_b: Cached question

        Returns:
            True only for an EQUIVALENT verdict
        """
        outcome = await self.validate(question_a, question_b)
        return outcome == ValidationOutcome.EQUIVALENT

    @staticmethod
    def classify(reply: str) -> ValidationOutcome:
        """
        Classify an LLM reply.

        Args:
            reply: Raw reply text

        Returns:
            EQUIVALENT for affirmative-only replies, NOT_EQUIVALENT for
            negative-only replies, otherwise UNKNOWN
        """
        decomposed = unicodedata.normalize("NFKD", reply.lower())
        plain = "".join(c for c in decomposed if not unicodedata.combining(c))
        tokens = set(_WORD.findall(plain))

        affirmative = bool(tokens & AFFIRMATIVE_TOKENS)
        negative = bool(tokens & NEGATIVE_TOKENS)

        if affirmative and not negative:
            return ValidationOutcome.EQUIVALENT
        if negative and not affirmative:
            return ValidationOutcome.NOT_EQUIVALENT
        return ValidationOutcome.UNKNOWN
