"""
Query processing service.

Answers questions about the dataset: answer cache, then SQL generation,
then SQL result cache or execution, then summarization. Replies without
SQL are returned directly as the answer.

Sandi Metz Principles:
- Single Responsibility: Question orchestration
- Small methods: One method per pipeline step
- Dependency Injection: Caches, LLM and executor injected
"""

import json
import re
import time
from typing import List, Optional, Sequence, Tuple

from app.cache.answer_cache import AnswerCache
from app.cache.sql_result_cache import SqlResultCache
from app.config import config
from app.exceptions import LLMProviderError
from app.llm.provider import BaseLLMProvider
from app.models.cache_entry import AnswerHit
from app.models.llm import ChatMessage, LLMResponse
from app.models.query import QueryRequest
from app.models.response import CacheInfo, QueryResponse, UsageMetrics
from app.services.sql_executor import SqlExecutionResult, SqliteSqlExecutor
from app.utils.logger import get_logger

logger = get_logger(__name__)

CACHE_PROVIDER = "cache"
FALLBACK_ROW_LIMIT = 10

_SQL_BLOCK = re.compile(r"```(?:sql)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_SQL_START = re.compile(
    r"^\s*(?:select\s|with\s+(?:recursive\s+)?\w+(?:\s*\([^)]*\))?\s+as\s*\()",
    re.IGNORECASE,
)

SQL_PROMPT = """You translate questions into SQLite queries.

Database schema:
{schema}

Rules:
- Write exactly one SELECT statement
- Use only the tables and columns in the schema
- Return the SQL in a ```sql code block and nothing else
- If the question does not need data (a greeting, a question about you),
  answer it directly in plain text without SQL

Question: {question}"""

SUMMARY_PROMPT = """Answer the question using only the query result below.
Write a short, direct answer in the language of the question. Do not show SQL.

Question: {question}

SQL:
{sql}

Result (JSON, {row_count} rows):
{payload}"""

SUMMARY_RETRY_PROMPT = """Your previous reply contained SQL. That is wrong here:
the query already ran and its result is below.

Do not write SQL. Do not use code blocks. Only read the result and answer the
question in plain text, in the language of the question.

Question: {question}

Result (JSON, {row_count} rows):
{payload}"""


def extract_sql(reply: str) -> Optional[str]:
    """
    Extract SQL from an LLM reply.

    Args:
        reply: Raw reply

    Returns:
        Contents of the first fenced block, the whole reply when it starts
        with SELECT or WITH, or None when the reply carries no SQL
    """
    match = _SQL_BLOCK.search(reply)
    if match:
        return match.group(1).strip()
    if _SQL_START.match(reply):
        return reply.strip()
    return None


def fallback_summary(result: SqlExecutionResult) -> str:
    """
    Describe a SQL result without the LLM.

    Args:
        result: SQL result with a {"columns", "rows"} JSON payload

    Returns:
        Plain-text listing of the first rows
    """
    if result.row_count == 0:
        return "No data matched this question."

    try:
        data = json.loads(result.payload)
        columns = data["columns"]
        rows = data["rows"]
    except (ValueError, KeyError, TypeError):
        return f"Found {result.row_count} row(s) for this question."

    lines = [f"Found {result.row_count} row(s) for this question:"]
    for row in rows[:FALLBACK_ROW_LIMIT]:
        lines.append(
            ", ".join(
                f"{column.replace('_', ' ')}: {value}"
                for column, value in zip(columns, row)
            )
        )
    if result.row_count > FALLBACK_ROW_LIMIT:
        lines.append(f"... and {result.row_count - FALLBACK_ROW_LIMIT} more.")
    return "\n".join(lines)


class QueryService:
    """
    Main question processing service.

    Coordinates both cache tiers, the LLM and the SQL executor.
    """

    def __init__(
        self,
        answer_cache: AnswerCache,
        sql_result_cache: Optional[SqlResultCache],
        llm_provider: BaseLLMProvider,
        executor: SqliteSqlExecutor,
        max_result_chars: Optional[int] = None,
    ):
        """
        Initialize service.

        Args:
            answer_cache: Answer cache
            sql_result_cache: SQL result cache (None disables tier 2)
            llm_provider: LLM provider
            executor: SQL executor
            max_result_chars: Result characters sent to the LLM
        """
        self._answer_cache = answer_cache
        self._sql_result_cache = sql_result_cache
        self._llm = llm_provider
        self._executor = executor
        self._max_result_chars = max_result_chars or config.max_result_chars

    async def process(self, request: QueryRequest) -> QueryResponse:
        """
        Answer a question.

        Args:
            request: Query request

        Returns:
            Query response

        Raises:
            LLMProviderError: If the LLM fails or returns an empty reply
            SqlExecutionError: If the generated SQL cannot be executed
        """
        start_time = time.time()

        if request.use_cache:
            hit = await self._answer_cache.get(request.query)
            if hit:
                return self._build_cached_response(hit, start_time)

        sql_response = await self._generate_sql(request.query, request.history)
        sql = extract_sql(sql_response.content)

        if sql is None:
            return await self._answer_directly(request, sql_response, start_time)
        if not sql:
            raise LLMProviderError("Model did not return a SQL statement")

        result, sql_cached = await self._run_sql(sql, request.use_cache)

        answer, summaries = await self._summarize(
            request.query, sql, result, request.history
        )

        if request.use_cache:
            await self._answer_cache.save(request.query, answer)

        return self._build_response(
            answer,
            [sql_response] + summaries,
            start_time,
            sql=sql,
            result=result,
            sql_cached=sql_cached,
        )

    async def _answer_directly(
        self, request: QueryRequest, reply: LLMResponse, start_time: float
    ) -> QueryResponse:
        """
        Use a reply without SQL as the answer.

        Args:
            request: Query request
            reply: LLM reply to the SQL prompt
            start_time: Request start time

        Returns:
            Query response without SQL details
        """
        answer = reply.content.strip()
        if not answer:
            raise LLMProviderError("Model returned an empty reply")

        logger.info("Answered without SQL", query=request.query[:100])

        if request.use_cache:
            await self._answer_cache.save(request.query, answer)

        return self._build_response(answer, [reply], start_time)

    async def _generate_sql(
        self, question: str, history: Sequence[ChatMessage]
    ) -> LLMResponse:
        """
        Ask the LLM for SQL answering question.

        Args:
            question: User question
            history: Previous conversation turns

        Returns:
            LLM response containing SQL or a direct answer
        """
        schema = await self._executor.describe_schema()
        prompt = SQL_PROMPT.format(schema=schema, question=question)
        return await self._llm.generate(prompt, history=history)

    async def _run_sql(
        self, sql: str, use_cache: bool
    ) -> Tuple[SqlExecutionResult, bool]:
        """
        Get SQL result from cache or by executing it.

        Args:
            sql: SQL text
            use_cache: Whether the SQL result cache may be used

        Returns:
            Result and whether it came from cache
        """
        cache = self._sql_result_cache if use_cache else None

        if cache:
            cached = await cache.get(sql)
            if cached:
                return (
                    SqlExecutionResult(
                        payload=cached.result_payload, row_count=cached.row_count
                    ),
                    True,
                )

        result = await self._executor.execute(sql)

        if cache:
            await cache.save(sql, result.payload, result.row_count)

        return result, False

    async def _summarize(
        self,
        question: str,
        sql: str,
        result: SqlExecutionResult,
        history: Sequence[ChatMessage],
    ) -> Tuple[str, List[LLMResponse]]:
        """
        Ask the LLM to answer from the SQL result.

        A summary containing SQL is retried once with a stricter prompt;
        if it still contains SQL the result is described without the LLM.

        Args:
            question: User question
            sql: SQL that was run
            result: SQL result
            history: Previous conversation turns

        Returns:
            Answer text and the LLM responses used
        """
        payload = result.payload
        if len(payload) > self._max_result_chars:
            payload = payload[: self._max_result_chars] + "... (truncated)"

        prompt = SUMMARY_PROMPT.format(
            question=question, sql=sql, row_count=result.row_count, payload=payload
        )
        summary = await self._llm.generate(prompt, history=history)
        if extract_sql(summary.content) is None:
            return summary.content.strip(), [summary]

        logger.warning("Summary contained SQL, retrying", query=question[:100])
        retry_prompt = SUMMARY_RETRY_PROMPT.format(
            question=question, row_count=result.row_count, payload=payload
        )
        retry = await self._llm.generate(retry_prompt, history=history)
        if extract_sql(retry.content) is None:
            return retry.content.strip(), [summary, retry]

        logger.error("Summary retry contained SQL, using fallback", query=question[:100])
        return fallback_summary(result), [summary, retry]

    def _build_cached_response(self, hit: AnswerHit, start_time: float) -> QueryResponse:
        """
        Build response from an answer cache hit.

        Args:
            hit: Answer cache hit
            start_time: Request start time

        Returns:
            Query response
        """
        latency = (time.time() - start_time) * 1000
        cache_info = (
            CacheInfo.exact_hit()
            if hit.is_exact
            else CacheInfo.semantic_hit(hit.similarity_score)
        )

        return QueryResponse(
            response=hit.response,
            provider=CACHE_PROVIDER,
            model=CACHE_PROVIDER,
            usage=UsageMetrics.empty(),
            cache_info=cache_info,
            latency_ms=latency,
        )

    def _build_response(
        self,
        answer: str,
        llm_responses: List[LLMResponse],
        start_time: float,
        sql: Optional[str] = None,
        result: Optional[SqlExecutionResult] = None,
        sql_cached: bool = False,
    ) -> QueryResponse:
        """
        Build response from a pipeline run.

        Args:
            answer: Final answer text
            llm_responses: Every LLM response used, in call order
            start_time: Request start time
            sql: SQL that was run (None for direct answers)
            result: SQL result (None for direct answers)
            sql_cached: Whether the result came from cache

        Returns:
            Query response
        """
        latency = (time.time() - start_time) * 1000

        return QueryResponse(
            response=answer,
            sql=sql,
            row_count=result.row_count if result else None,
            sql_cached=sql_cached,
            provider=self._llm.get_name(),
            model=llm_responses[-1].model,
            usage=UsageMetrics.create(
                sum(r.prompt_tokens for r in llm_responses),
                sum(r.completion_tokens for r in llm_responses),
            ),
            cache_info=CacheInfo.miss(),
            latency_ms=latency,
        )
