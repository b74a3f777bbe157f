"""
Concurrent commit tests.

These need real row locks, so they only run against PostgreSQL
(point TEST_DATABASE_URL at a postgresql+psycopg:// database).
"""

import asyncio

import pytest
from services.orders_service.errors import InsufficientStockError, OrderError
from services.orders_service.services.order_ops import commit_order, update_order
from tests.factories import make_seller, make_stock_unit, stock_on_hand, table_counts

pytestmark = pytest.mark.postgres


async def _commit_in_own_session(session_factory, seller_id, items):
    async with session_factory() as session:
        order = await commit_order(session, seller_id=seller_id, items=items)
        return order.id


@pytest.mark.asyncio
@pytest.mark.integration
async def test_competing_commits_never_oversell(
    requires_row_locks, session_factory, db_session
):
    """Two orders of 3 against a stock of 5: exactly one wins."""
    seller_id = await make_seller(db_session)
    unit_id = await make_stock_unit(db_session, stock_on_hand=5)
    items = [{"stock_unit_id": unit_id, "quantity": 3}]

    results = await asyncio.gather(
        _commit_in_own_session(session_factory, seller_id, items),
        _commit_in_own_session(session_factory, seller_id, items),
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, int)]
    losers = [r for r in results if isinstance(r, InsufficientStockError)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert losers[0].available == 2
    assert await stock_on_hand(db_session, unit_id) == 2
    assert (await table_counts(db_session))["orders"] == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_opposite_line_order_does_not_deadlock(
    requires_row_locks, session_factory, db_session
):
    """Lines listed in opposite order still lock in the same order."""
    seller_id = await make_seller(db_session)
    a = await make_stock_unit(db_session, stock_on_hand=50)
    b = await make_stock_unit(db_session, stock_on_hand=50)

    forward = [{"stock_unit_id": a, "quantity": 1}, {"stock_unit_id": b, "quantity": 1}]
    backward = list(reversed(forward))

    results = await asyncio.gather(
        *[
            _commit_in_own_session(
                session_factory, seller_id, forward if i % 2 else backward
            )
            for i in range(10)
        ],
        return_exceptions=True,
    )

    assert all(isinstance(r, int) for r in results), results
    assert await stock_on_hand(db_session, a) == 40
    assert await stock_on_hand(db_session, b) == 40


@pytest.mark.asyncio
@pytest.mark.integration
async def test_stock_is_conserved_under_load(
    requires_row_locks, session_factory, db_session
):
    """Initial stock equals remaining stock plus everything sold."""
    seller_id = await make_seller(db_session)
    unit_id = await make_stock_unit(db_session, stock_on_hand=12)
    items = [{"stock_unit_id": unit_id, "quantity": 1}]

    results = await asyncio.gather(
        *[_commit_in_own_session(session_factory, seller_id, items) for _ in range(20)],
        return_exceptions=True,
    )

    winners = [r for r in results if isinstance(r, int)]
    assert all(isinstance(r, (int, OrderError)) for r in results), results
    assert 0 < len(winners) <= 12
    assert await stock_on_hand(db_session, unit_id) == 12 - len(winners)
    assert (await table_counts(db_session))["orders"] == len(winners)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_update_competes_with_commit(
    requires_row_locks, session_factory, db_session
):
    """An update increase and a new commit share the last units safely."""
    seller_id = await make_seller(db_session)
    unit_id = await make_stock_unit(db_session, stock_on_hand=4)
    order_id = await _commit_in_own_session(
        session_factory, seller_id, [{"stock_unit_id": unit_id, "quantity": 1}]
    )

    async def grow():
        async with session_factory() as session:
            order = await update_order(
                session,
                order_id=order_id,
                items=[{"stock_unit_id": unit_id, "quantity": 3}],
            )
            return order.id

    results = await asyncio.gather(
        grow(),
        _commit_in_own_session(
            session_factory, seller_id, [{"stock_unit_id": unit_id, "quantity": 2}]
        ),
        return_exceptions=True,
    )

    successes = [r for r in results if isinstance(r, int)]
    assert len(successes) == 1
    assert isinstance(
        next(r for r in results if not isinstance(r, int)), InsufficientStockError
    )
    assert await stock_on_hand(db_session, unit_id) == 1
