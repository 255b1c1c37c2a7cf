"""Input checks for submissions and accounts. All raise ValidationError."""

from datetime import date
from typing import Optional

from .duplicates import normalize_url
from .errors import ValidationError

MAX_RATING = 5.0


def require(**values) -> None:
    """Reject blank required fields."""
    missing = [name for name, value in values.items() if value is None or str(value).strip() == ""]
    if missing:
        raise ValidationError("Por favor, preencha todos os campos obrigatórios.")


def validate_rating(rating: float, allow_zero: bool = False, half_steps: bool = True) -> float:
    """Ratings live in [0, 5], in half-star steps unless half_steps is off.

    Merged records carry a 2-decimal mean, so edits of existing records
    check the range only.
    """
    try:
        rating = float(rating)
    except (TypeError, ValueError):
        raise ValidationError("Avaliação inválida.")
    if rating == 0 and not allow_zero:
        raise ValidationError("Por favor, selecione uma avaliação em estrelas.")
    if rating < 0 or rating > MAX_RATING:
        raise ValidationError("A avaliação deve estar entre 0 e 5.")
    if half_steps and (rating * 2) != int(rating * 2):
        raise ValidationError("A avaliação deve estar entre 0 e 5, em passos de meia estrela.")
    return rating


def validate_date(value: Optional[str], label: str = "data") -> Optional[str]:
    """YYYY-MM-DD or empty."""
    if not value:
        return None
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Formato de {label} inválido. Use AAAA-MM-DD.")
    return value


def validate_link(link: str) -> str:
    link = (link or "").strip()
    if normalize_url(link) is None:
        raise ValidationError("Por favor, insira um link de financiamento coletivo válido.")
    return link


def validate_email(email: str) -> str:
    email = (email or "").strip()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("E-mail inválido.")
    return email
