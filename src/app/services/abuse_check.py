import re
from typing import Optional

from loguru import logger
from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.constants import (
    DISPOSABLE_EMAIL_DOMAINS,
    SUSPICIOUS_NAME_PATTERNS,
)
from app.core.exceptions import SuspiciousRequestError
from app.schemas.reservation import ReservationCreate

DISPOSABLE_EMAIL_SCORE = 40
SUSPICIOUS_NAME_SCORE = 30
LINK_IN_REQUESTS_SCORE = 30

LINK_PATTERN = re.compile(r'(https?://|www\.)', re.IGNORECASE)


class AbuseAssessment(BaseModel):
    """Итог антиспам-проверки запроса."""

    score: int = 0
    reasons: list[str] = Field(default_factory=list)


class AbuseChecker:
    """Эвристическая оценка подозрительных запросов на бронирование.

    Не заменяет валидацию: корректный по правилам запрос всё равно
    может быть отклонён, если набрал слишком много баллов.
    """

    def __init__(
        self,
        enabled: bool = True,
        threshold: int = 60,
    ) -> None:
        """Параметры берутся из настроек, тесты могут передать свои."""
        self.enabled = enabled
        self.threshold = threshold

    def assess(self, data: ReservationCreate) -> AbuseAssessment:
        """Считает баллы подозрительности запроса."""
        assessment = AbuseAssessment()
        domain = data.customer_email.rsplit('@', 1)[-1].strip().lower()
        if domain in DISPOSABLE_EMAIL_DOMAINS:
            assessment.score += DISPOSABLE_EMAIL_SCORE
            assessment.reasons.append('одноразовый email')
        name = data.customer_name.lower()
        if any(
            re.search(pattern, name) for pattern in SUSPICIOUS_NAME_PATTERNS
        ):
            assessment.score += SUSPICIOUS_NAME_SCORE
            assessment.reasons.append('подозрительное имя')
        requests = data.special_requests or ''
        if LINK_PATTERN.search(requests):
            assessment.score += LINK_IN_REQUESTS_SCORE
            assessment.reasons.append('ссылка в пожеланиях')
        return assessment

    def enforce(
        self,
        data: ReservationCreate,
        source: Optional[str] = None,
    ) -> None:
        """Отклоняет запрос, набравший не меньше порога."""
        if not self.enabled:
            return
        assessment = self.assess(data)
        if assessment.score >= self.threshold:
            logger.warning(
                f'Запрос на бронирование отклонён ({source or "-"}): '
                f'баллы {assessment.score}, '
                f'причины: {", ".join(assessment.reasons)}',
            )
            raise SuspiciousRequestError()
        if assessment.score:
            logger.info(
                f'Подозрительный запрос на бронирование пропущен: '
                f'баллы {assessment.score}',
            )


abuse_checker = AbuseChecker(
    enabled=settings.ABUSE_CHECK_ENABLED,
    threshold=settings.ABUSE_SCORE_THRESHOLD,
)
