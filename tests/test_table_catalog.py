import math
import uuid

import pytest
from sqlalchemy.exc import InvalidRequestError

from app.core.exceptions import NotFoundError
from app.repositories.table import table_repository
from app.schemas.table import TableCreate, TableUpdate
from app.services.table_catalog import TableCatalog
from app.utils.enums import TableType


def test_fit_score_counts_spare_seats(tables):
    standard_four = tables[1]
    assert TableCatalog.fit_score(standard_four, 4) == 0
    assert TableCatalog.fit_score(standard_four, 3) == 1


def test_fit_score_penalizes_private_tables(tables):
    private_eight = tables[3]
    assert private_eight.table_type == TableType.PRIVATE
    assert TableCatalog.fit_score(private_eight, 6) == 2 + 5


def test_fit_score_is_infinite_for_unsuitable_table(tables):
    standard_four = tables[1]
    assert TableCatalog.fit_score(standard_four, 5) == math.inf
    assert TableCatalog.fit_score(standard_four, 1) == math.inf


def test_can_accommodate_respects_bounds_and_activity(tables):
    standard_four = tables[1]
    assert TableCatalog.can_accommodate(standard_four, 2)
    assert TableCatalog.can_accommodate(standard_four, 4)
    assert not TableCatalog.can_accommodate(standard_four, 1)
    assert not TableCatalog.can_accommodate(standard_four, 5)
    standard_four.is_active = False
    assert not TableCatalog.can_accommodate(standard_four, 4)


async def test_list_active_tables_orders_by_capacity_then_number(
    session,
    tables,
):
    tables[0].is_active = False
    await session.commit()

    result = await TableCatalog.list_active_tables(session)

    assert [table.number for table in result] == [2, 3, 4]


async def test_get_table_raises_for_unknown_id(session, tables):
    with pytest.raises(NotFoundError):
        await TableCatalog.get_table(session, uuid.uuid4())


async def test_create_table_rejects_duplicate_number(session, tables):
    with pytest.raises(ValueError):
        await TableCatalog.create_table(
            session,
            TableCreate(number=1, name='Дубль', capacity=2),
        )


async def test_update_table_checks_party_bounds(session, tables):
    with pytest.raises(ValueError):
        await TableCatalog.update_table(
            session,
            tables[1].id,
            TableUpdate(min_party_size=6),
        )


async def test_update_table_can_deactivate(session, tables):
    updated = await TableCatalog.update_table(
        session,
        tables[0].id,
        TableUpdate(is_active=False),
    )

    assert updated.is_active is False
    active = await TableCatalog.list_active_tables(session)
    assert tables[0].id not in {table.id for table in active}


async def test_table_reservations_are_not_loaded_implicitly(
    session_factory,
    tables,
):
    async with session_factory() as session:
        table = await table_repository.get_active(session, tables[0].id)

        with pytest.raises(InvalidRequestError):
            table.reservations
