"""
AI Financial Advisor

Builds a bounded summary of the user's finances, turns it into a fixed
prompt and asks Gemini for advice.

BOUNDARIES:
- The model only sees the summary: total balance, account count and the
  most recent transactions (amount, kind, category, note).
- Its answer is opaque display text; nothing here parses or checks it.
- Every failure degrades to a fallback message, never an exception.
  Without an API key the model is never even constructed.
"""

import json
from decimal import Decimal
from typing import Iterable, Optional

import google.generativeai as genai
import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_fixed

from zenfinance.activity import ActivityLogger
from zenfinance.config import GeminiSettings, get_settings
from zenfinance.models.finance import (
    Account,
    FinancialSummary,
    Transaction,
    TransactionDigest,
)
from zenfinance.queries.aggregation import total_balance


logger = structlog.get_logger(__name__)


NO_CREDENTIALS_MESSAGE = (
    "AI advice is unavailable: the app is in offline mode or no Gemini API key "
    "is configured."
)
EMPTY_RESPONSE_MESSAGE = "The AI could not generate advice right now. Please try again later."
REQUEST_FAILED_MESSAGE = "Something went wrong while fetching AI advice."


def summarize(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
    limit: int = 10,
) -> FinancialSummary:
    """
    Reduce accounts and transactions to what the advisor may see.

    Transactions are taken in the order given; callers pass them
    most recent first.
    """
    accounts = list(accounts)
    digests = [
        TransactionDigest(
            amount=transaction.amount,
            kind=transaction.kind,
            category=transaction.category,
            note=transaction.note,
        )
        for transaction in list(transactions)[:limit]
    ]
    return FinancialSummary(
        total_balance=total_balance(accounts),
        account_count=len(accounts),
        recent_transactions=digests,
    )


def _format_amount(value: Decimal) -> str:
    # Integral amounts print without a trailing ".00"
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return str(value)


def build_advice_prompt(summary: FinancialSummary, language: str = "English") -> str:
    """
    Fixed advice template.

    Transaction fields are passed through as-is, odd values included;
    the model is left to make sense of them.
    """
    recent = [
        {
            "amount": _format_amount(digest.amount),
            "type": digest.kind.value,
            "category": digest.category,
            "note": digest.note or "",
        }
        for digest in summary.recent_transactions
    ]

    return f"""As a senior professional financial advisor, analyze the following financial situation and give concrete advice:
Total balance across accounts: {_format_amount(summary.total_balance)}
Number of accounts: {summary.account_count}
Recent transactions: {json.dumps(recent, ensure_ascii=False)}

Please provide:
1. An observation on how expenses are distributed.
2. One concrete saving or investment suggestion.
3. A short remark on the current financial health (under 100 words).
Please answer in {language}."""


class FinancialAdvisorAgent:
    """
    Gemini-backed advisor.

    One request per call, with an explicit timeout and at most
    max_attempts tries (a single retry by default).
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        language: Optional[str] = None,
        transaction_limit: Optional[int] = None,
        activity_logger: Optional[ActivityLogger] = None,
        model=None,
    ):
        self._settings = settings or get_settings().gemini
        app_settings = None
        if language is None or transaction_limit is None:
            app_settings = get_settings().app
        self._language = language or app_settings.advice_language
        self._transaction_limit = transaction_limit or app_settings.advice_transactions_limit
        self._activity_logger = activity_logger
        self._model = model

    @property
    def configured(self) -> bool:
        return self._model is not None or self._settings.has_credentials

    def _get_model(self):
        """Configure Google Generative AI on first use."""
        if self._model is None:
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                }
            )
        return self._model

    async def _generate(self, prompt: str):
        model = self._get_model()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._settings.max_attempts),
            wait=wait_fixed(self._settings.retry_wait_seconds),
            reraise=True,
        ):
            with attempt:
                return await model.generate_content_async(
                    prompt,
                    request_options={"timeout": self._settings.timeout_seconds},
                )

    @staticmethod
    def _response_text(response) -> str:
        # .text raises ValueError when the response was blocked or has no text part
        try:
            return response.text or ""
        except ValueError as e:
            logger.warning("advice_response_without_text", error=str(e))
            return ""

    async def request_advice(
        self,
        accounts: Iterable[Account],
        transactions: Iterable[Transaction],
    ) -> str:
        """
        Ask for advice on the given accounts and transactions.

        Returns the model's text verbatim, or a fallback message when no
        API key is configured, the call fails, or the answer is empty.
        """
        if not self.configured:
            self._fallback("no_credentials")
            return NO_CREDENTIALS_MESSAGE

        summary = summarize(accounts, transactions, limit=self._transaction_limit)
        prompt = build_advice_prompt(summary, self._language)

        try:
            response = await self._generate(prompt)
        except Exception as e:
            logger.error("advice_request_failed", error=str(e))
            if self._activity_logger:
                self._activity_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                )
            self._fallback("request_failed", str(e))
            return REQUEST_FAILED_MESSAGE

        text = self._response_text(response)
        if not text or not text.strip():
            self._fallback("empty_response")
            return EMPTY_RESPONSE_MESSAGE

        return text

    def _fallback(self, reason: str, error_message: Optional[str] = None) -> None:
        if self._activity_logger:
            self._activity_logger.log_advice_fallback(reason, error_message)
