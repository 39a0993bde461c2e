"""Form validation package."""

from zenfinance.validation.validator import FormValidator, parse_amount

__all__ = ["FormValidator", "parse_amount"]
