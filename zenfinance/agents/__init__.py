"""AI Agents package."""

from zenfinance.agents.advisor import (
    EMPTY_RESPONSE_MESSAGE,
    NO_CREDENTIALS_MESSAGE,
    REQUEST_FAILED_MESSAGE,
    FinancialAdvisorAgent,
    build_advice_prompt,
    summarize,
)

__all__ = [
    "EMPTY_RESPONSE_MESSAGE",
    "NO_CREDENTIALS_MESSAGE",
    "REQUEST_FAILED_MESSAGE",
    "FinancialAdvisorAgent",
    "build_advice_prompt",
    "summarize",
]
