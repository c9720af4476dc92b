"""
OpenAI official API provider.

Uses the official OpenAI Python SDK (openai.AsyncOpenAI) for chat completions
and embeddings, wrapped in a multi-layer rate limiting strategy.
"""

import os
import time
import asyncio
import httpx
import openai
from typing import List, Optional
from tenacity import AsyncRetrying, wait_random_exponential, stop_after_attempt, retry_if_exception_type
from aiolimiter import AsyncLimiter

from .protocol import LLMProvider, LLMError
from core.observation.logger import get_logger

logger = get_logger(__name__)

RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.APIError,
    openai.APITimeoutError,
    httpx.RemoteProtocolError,
)


class OpenAIProvider(LLMProvider):
    """
    Official OpenAI API provider using openai.AsyncOpenAI with proactive rate limiting.

    Layers:
    1. HTTP connection pool (httpx)
    2. Physical concurrency control (Semaphore), shared across instances
    3. Logical rate limiting (AsyncLimiter), shared across instances
    4. Exponential backoff retry (tenacity) for transient errors
    """

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        embedding_model: str | None = None,
        enable_stats: bool = False,
        **kwargs,
    ):
        """
        Initialize OpenAI provider.

        Args:
            model: Chat model name (defaults to LLM_MODEL env var or "gpt-4o-mini")
            api_key: API key (defaults to LLM_API_KEY/OPENAI_API_KEY env var)
            base_url: Base URL (defaults to LLM_BASE_URL env var)
            temperature: Sampling temperature (defaults to LLM_TEMPERATURE env var or 0.0)
            max_tokens: Maximum tokens to generate (defaults to LLM_MAX_TOKENS env var or 16384)
            embedding_model: Embedding model (defaults to EMBEDDING_MODEL env var
                or "text-embedding-3-small")
            enable_stats: Record token usage of the most recent call
            **kwargs: Ignored

        Environment Variables:
            OPENAI_TIMEOUT: API timeout in seconds (default: 60)
            OPENAI_MAX_RETRIES: SDK-level retry attempts (default: 0, disabled)
            OPENAI_MAX_CONCURRENT: Physical concurrency limit (default: 20)
            OPENAI_RPM_LIMIT: Requests per minute rate limit (default: 500)
            OPENAI_RETRY_MIN_WAIT: Minimum retry wait in seconds (default: 1)
            OPENAI_RETRY_MAX_WAIT: Maximum retry wait in seconds (default: 60)
            OPENAI_RETRY_ATTEMPTS: Maximum retry attempts (default: 5)
        """
        self.model = model or os.getenv("LLM_MODEL", "gpt-4o-mini")
        self.embedding_model = embedding_model or os.getenv("EMBEDDING_MODEL", "text-embedding-3-small")
        self.temperature = temperature if temperature is not None else float(os.getenv("LLM_TEMPERATURE", "0.0"))
        self.max_tokens = max_tokens if max_tokens is not None else int(os.getenv("LLM_MAX_TOKENS", "16384"))
        self.enable_stats = enable_stats

        self.api_key = api_key or os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
        self.base_url = base_url or os.getenv("LLM_BASE_URL") or "https://api.openai.com/v1"

        self.timeout = float(os.getenv("OPENAI_TIMEOUT", "60"))
        self.max_retries = int(os.getenv("OPENAI_MAX_RETRIES", "0"))

        max_concurrent = int(os.getenv("OPENAI_MAX_CONCURRENT", "20"))
        # Keep around 80% of the account tier limit
        rpm_limit = int(os.getenv("OPENAI_RPM_LIMIT", "500"))

        # http2=False: httpx's HTTP/2 gets "Server disconnected" from OpenAI.
        # Short keepalive so stale pooled connections are dropped, not reused.
        http_client = httpx.AsyncClient(
            http2=False,
            limits=httpx.Limits(
                max_keepalive_connections=max_concurrent * 2,
                max_connections=max_concurrent * 4,
                keepalive_expiry=5.0,
            ),
            timeout=httpx.Timeout(self.timeout, connect=30.0),
        )

        self.client = openai.AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=self.max_retries,
            http_client=http_client,
        )

        # Class-level so the limit holds across provider instances
        if not hasattr(OpenAIProvider, '_semaphore') or OpenAIProvider._semaphore_size != max_concurrent:
            OpenAIProvider._semaphore = asyncio.Semaphore(max_concurrent)
            OpenAIProvider._semaphore_size = max_concurrent
        self.semaphore = OpenAIProvider._semaphore

        if not hasattr(OpenAIProvider, '_rate_limiter') or OpenAIProvider._rpm_limit != rpm_limit:
            OpenAIProvider._rate_limiter = AsyncLimiter(max_rate=rpm_limit, time_period=60)
            OpenAIProvider._rpm_limit = rpm_limit
        self.rate_limiter = OpenAIProvider._rate_limiter

        self.current_call_stats = None

        logger.info(
            f"Initialized OpenAIProvider with model={self.model}, embedding_model={self.embedding_model}, "
            f"timeout={self.timeout}s, max_concurrent={max_concurrent}, rpm_limit={rpm_limit}"
        )

    @staticmethod
    def _retry_settings() -> tuple[int, int, int]:
        return (
            int(os.getenv("OPENAI_RETRY_MIN_WAIT", "1")),
            int(os.getenv("OPENAI_RETRY_MAX_WAIT", "60")),
            int(os.getenv("OPENAI_RETRY_ATTEMPTS", "5")),
        )

    def _retrying(self) -> AsyncRetrying:
        retry_min_wait, retry_max_wait, retry_attempts = self._retry_settings()
        return AsyncRetrying(
            wait=wait_random_exponential(min=retry_min_wait, max=retry_max_wait),
            stop=stop_after_attempt(retry_attempts),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True,
        )

    def _log_retryable(self, e: Exception, attempt_num: int, duration: float) -> None:
        _, _, retry_attempts = self._retry_settings()
        error_type = type(e).__name__
        if isinstance(e, openai.RateLimitError):
            logger.warning(
                f"[OpenAI-{self.model}] 429 RateLimitError, OPENAI_RPM_LIMIT is above the account limit"
            )
        if isinstance(e, (openai.APIConnectionError, openai.APITimeoutError, httpx.RemoteProtocolError)):
            logger.warning(
                f"[OpenAI-{self.model}] Connection error, attempt {attempt_num}/{retry_attempts}: "
                f"{error_type} after {duration:.2f}s: {str(e)[:200]}"
            )
        else:
            logger.info(
                f"[OpenAI-{self.model}] Retry {attempt_num}/{retry_attempts}: {error_type} after {duration:.2f}s"
            )

    async def generate(
        self,
        prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        extra_body: dict | None = None,
        response_format: dict | None = None,
    ) -> str:
        """
        Generate a response for the given prompt.

        Args:
            prompt: Input prompt
            temperature: Override temperature for this request
            max_tokens: Override max tokens for this request
            extra_body: Extra request body parameters
            response_format: Response format specification

        Returns:
            Generated response text

        Raises:
            LLMError: If generation fails
        """
        start_time = time.perf_counter()
        try:
            async with self.semaphore:
                async with self.rate_limiter:
                    # Exclude queue wait from the measured duration
                    start_time = time.perf_counter()
                    async for attempt in self._retrying():
                        with attempt:
                            try:
                                return await self._stream_completion(
                                    prompt, temperature, max_tokens, extra_body, response_format, start_time
                                )
                            except RETRYABLE_ERRORS as e:
                                self._log_retryable(
                                    e, attempt.retry_state.attempt_number, time.perf_counter() - start_time
                                )
                                raise
                            except Exception as e:
                                logger.error(f"[OpenAI-{self.model}] Non-retryable error: {e}")
                                raise LLMError(f"Request failed: {str(e)}") from e

        except LLMError:
            raise

        except RETRYABLE_ERRORS as e:
            _, _, retry_attempts = self._retry_settings()
            error_type = type(e).__name__
            duration = time.perf_counter() - start_time
            logger.error(f"[OpenAI-{self.model}] {error_type} after {retry_attempts} attempts ({duration:.2f}s): {e}")
            raise LLMError(f"{error_type} after {retry_attempts} retries: {str(e)}") from e

        except Exception as e:
            logger.error(f"[OpenAI-{self.model}] Unexpected error: {e}")
            raise LLMError(f"Unexpected error: {str(e)}") from e

    async def _stream_completion(
        self,
        prompt: str,
        temperature: float | None,
        max_tokens: int | None,
        extra_body: dict | None,
        response_format: dict | None,
        start_time: float,
    ) -> str:
        params = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature if temperature is not None else self.temperature,
        }
        if max_tokens is not None:
            params["max_tokens"] = int(max_tokens)
        elif self.max_tokens is not None:
            params["max_tokens"] = int(self.max_tokens)
        if response_format is not None:
            params["response_format"] = response_format
        if extra_body:
            params["extra_body"] = extra_body

        # 必须使用流式传输：持续回传的数据包可以防止代理切断长时间的请求
        response_stream = await self.client.chat.completions.create(
            **params,
            stream=True,
            stream_options={"include_usage": True},
            timeout=300.0,
            extra_headers={"Connection": "close"},
        )

        collected_content = []
        finish_reason = None
        usage_info = None
        async for chunk in response_stream:
            if chunk.choices:
                delta = chunk.choices[0].delta
                if delta and delta.content:
                    collected_content.append(delta.content)
                if chunk.choices[0].finish_reason:
                    finish_reason = chunk.choices[0].finish_reason
            # usage 只出现在最后一个 chunk
            if chunk.usage:
                usage_info = chunk.usage

        content = "".join(collected_content)
        if not content:
            raise ValueError("Empty response received from stream")

        if finish_reason and finish_reason != "stop":
            logger.warning(f"[OpenAI-{self.model}] finish_reason={finish_reason}")

        duration = time.perf_counter() - start_time
        prompt_tokens = usage_info.prompt_tokens if usage_info else 0
        completion_tokens = usage_info.completion_tokens if usage_info else 0
        total_tokens = usage_info.total_tokens if usage_info else 0
        logger.debug(
            f"[OpenAI-{self.model}] completion in {duration:.2f}s, "
            f"tokens prompt={prompt_tokens:,} completion={completion_tokens:,} total={total_tokens:,}"
        )

        if self.enable_stats:
            self.current_call_stats = {
                'prompt_tokens': prompt_tokens,
                'completion_tokens': completion_tokens,
                'total_tokens': total_tokens,
                'duration': duration,
                'timestamp': time.time(),
            }

        return content

    async def get_embedding(self, text: str) -> List[float]:
        """
        Embed a single text with the configured embedding model.

        Raises:
            LLMError: If the embedding call fails
        """
        start_time = time.perf_counter()
        try:
            async with self.semaphore:
                async with self.rate_limiter:
                    start_time = time.perf_counter()
                    async for attempt in self._retrying():
                        with attempt:
                            try:
                                response = await self.client.embeddings.create(
                                    model=self.embedding_model,
                                    input=text,
                                )
                            except RETRYABLE_ERRORS as e:
                                self._log_retryable(
                                    e, attempt.retry_state.attempt_number, time.perf_counter() - start_time
                                )
                                raise
                            if not response.data:
                                raise LLMError("Empty embedding response")
                            logger.debug(
                                f"[OpenAI-{self.embedding_model}] embedding in "
                                f"{time.perf_counter() - start_time:.2f}s"
                            )
                            return list(response.data[0].embedding)

        except LLMError:
            raise

        except Exception as e:
            error_type = type(e).__name__
            logger.error(f"[OpenAI-{self.embedding_model}] Embedding failed: {error_type}: {e}")
            raise LLMError(f"Embedding failed: {error_type}: {str(e)}") from e

    async def test_connection(self) -> bool:
        """
        Test the connection to the OpenAI API.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            test_response = await self.generate("Hello", temperature=0.1)
        except LLMError as e:
            logger.error(f"[OpenAI-{self.model}] Connection test failed: {e}")
            return False
        logger.info(f"[OpenAI-{self.model}] Connection test succeeded")
        return len(test_response) > 0

    def get_current_call_stats(self) -> Optional[dict]:
        """Get statistics for the most recent call (if enabled)."""
        if self.enable_stats:
            return self.current_call_stats
        return None

    def __repr__(self) -> str:
        return f"OpenAIProvider(model={self.model}, base_url={self.base_url}, embedding_model={self.embedding_model})"
