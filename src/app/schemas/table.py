from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.types import StringConstraints

from app.utils.enums import TableType

DescriptionConstraint = StringConstraints(
    strip_whitespace=True,
    max_length=300,
)
NameConstraint = StringConstraints(
    strip_whitespace=True,
    min_length=1,
    max_length=100,
)
PositiveNumber = Field(ge=1)


class TableBase(BaseModel):
    """Базовая схема для стола с общими полями."""

    number: Annotated[int, PositiveNumber]
    name: Annotated[str, NameConstraint]
    capacity: Annotated[int, PositiveNumber]
    min_party_size: Annotated[int, PositiveNumber] = 1
    table_type: TableType = TableType.STANDARD
    location_description: Optional[
        Annotated[str, DescriptionConstraint]
    ] = None

    @field_validator('location_description', mode='before')
    @classmethod
    def normalize_description(cls, value: Optional[str]) -> Optional[str]:
        """Удаляет лишние пробелы и приводит пустые строки к None."""
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError('Описание стола должно быть строкой')
        cleaned = value.strip()
        return cleaned or None


class TableCreate(TableBase):
    """Схема для создания нового стола."""

    @model_validator(mode='after')
    def validate_party_bounds(self) -> 'TableCreate':
        """Минимальное число гостей не может превышать вместимость."""
        if self.min_party_size > self.capacity:
            raise ValueError(
                'Минимальное количество гостей больше вместимости стола',
            )
        return self


class TableUpdate(BaseModel):
    """Схема для обновления существующего стола."""

    number: Optional[Annotated[int, PositiveNumber]] = None
    name: Optional[Annotated[str, NameConstraint]] = None
    capacity: Optional[Annotated[int, PositiveNumber]] = None
    min_party_size: Optional[Annotated[int, PositiveNumber]] = None
    table_type: Optional[TableType] = None
    location_description: Optional[
        Annotated[str, DescriptionConstraint]
    ] = None
    is_active: Optional[bool] = None

    @field_validator('location_description', mode='before')
    @classmethod
    def normalize_description(cls, value: Optional[str]) -> Optional[str]:
        """Удаляет лишние пробелы и приводит пустые строки к None."""
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError('Описание стола должно быть строкой')
        cleaned = value.strip()
        return cleaned or None


class TableShortInfo(BaseModel):
    """Сокращенная схема стола для вложенных объектов."""

    id: UUID
    number: int
    name: str
    capacity: int

    model_config = ConfigDict(from_attributes=True)


class TableInfo(TableShortInfo):
    """Полная схема стола."""

    min_party_size: int
    table_type: TableType
    location_description: Optional[str] = None
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TableOverview(BaseModel):
    """Состояние стола на дату для календаря персонала."""

    table: TableInfo
    reservations: list['ConflictSummary']
    next_available_slot: Optional[str] = None


from app.schemas.availability import ConflictSummary  # noqa: E402

TableOverview.model_rebuild()
