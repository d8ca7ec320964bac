"""Trip expenses and their approval workflow."""

import pytest
import pytest_asyncio

from fleetops.domain.enums import ExpenseStatus, Role
from fleetops.domain.errors import (
    DuplicateEntry,
    Forbidden,
    InvalidState,
    InvalidTransition,
    TripNotFound,
)
from fleetops.infrastructure.repositories import ExpenseRepository
from fleetops.services import expenses
from tests.factories import NOW, make_driver, make_trip, make_user, make_vehicle


@pytest_asyncio.fixture
async def trip_setup(db_session):
    vehicle = await make_vehicle(db_session, plate="MH-12-XY-0001")
    driver = await make_driver(db_session, full_name="Sunita Yadav")
    trip = await make_trip(db_session, vehicle, driver)
    analyst = await make_user(db_session, role=Role.FINANCIAL_ANALYST)
    return trip, driver, analyst


async def _record(session, trip, actor, fuel_cost=800, **extra):
    return await expenses.record_expense(
        session,
        trip_id=trip.id,
        fuel_cost=fuel_cost,
        distance=120,
        misc_expense=50,
        actor=actor,
        now=NOW,
        **extra,
    )


class TestRecord:
    @pytest.mark.asyncio
    async def test_expense_takes_driver_from_trip(self, db_session, trip_setup):
        trip, driver, analyst = trip_setup
        expense = await _record(db_session, trip, analyst)

        assert expense.driver_id == driver.id
        assert expense.status == ExpenseStatus.PENDING

    @pytest.mark.asyncio
    async def test_one_expense_per_trip(self, db_session, trip_setup):
        trip, _, analyst = trip_setup
        await _record(db_session, trip, analyst)
        with pytest.raises(DuplicateEntry):
            await _record(db_session, trip, analyst)

    @pytest.mark.asyncio
    async def test_unknown_trip(self, db_session, trip_setup):
        _, _, analyst = trip_setup
        with pytest.raises(TripNotFound):
            await expenses.record_expense(
                db_session, trip_id=9999, fuel_cost=1, actor=analyst, now=NOW
            )

    @pytest.mark.asyncio
    async def test_driver_records_only_own_trips(self, db_session, trip_setup):
        trip, driver, _ = trip_setup
        stranger = await make_driver(db_session)

        with pytest.raises(Forbidden):
            await _record(db_session, trip, stranger)
        expense = await _record(db_session, trip, driver)
        assert expense.trip_id == trip.id


class TestApproval:
    @pytest.mark.asyncio
    async def test_pending_approved_done(self, db_session, trip_setup):
        trip, _, analyst = trip_setup
        expense = await _record(db_session, trip, analyst)

        await expenses.change_expense_status(
            db_session, expense.id, ExpenseStatus.APPROVED
        )
        await expenses.change_expense_status(db_session, expense.id, ExpenseStatus.DONE)
        assert expense.status == ExpenseStatus.DONE

    @pytest.mark.asyncio
    async def test_cannot_skip_approval(self, db_session, trip_setup):
        trip, _, analyst = trip_setup
        expense = await _record(db_session, trip, analyst)
        with pytest.raises(InvalidTransition):
            await expenses.change_expense_status(
                db_session, expense.id, ExpenseStatus.DONE
            )

    @pytest.mark.asyncio
    async def test_amounts_frozen_after_approval(self, db_session, trip_setup):
        trip, _, analyst = trip_setup
        expense = await _record(db_session, trip, analyst)

        updated = await expenses.update_expense(
            db_session, expense.id, {"fuel_cost": 950}, analyst
        )
        assert updated.fuel_cost == 950

        await expenses.change_expense_status(
            db_session, expense.id, ExpenseStatus.APPROVED
        )
        with pytest.raises(InvalidState):
            await expenses.update_expense(
                db_session, expense.id, {"fuel_cost": 10}, analyst
            )


class TestListing:
    @pytest.mark.asyncio
    async def test_search_by_driver_name_and_plate(self, db_session, trip_setup):
        trip, _, analyst = trip_setup
        await _record(db_session, trip, analyst)
        repo = ExpenseRepository(db_session)

        assert len(await repo.find(search="sunita")) == 1
        assert len(await repo.find(search="xy-0001")) == 1
        assert await repo.find(search="nobody") == []

    @pytest.mark.asyncio
    async def test_delete(self, db_session, trip_setup):
        trip, driver, analyst = trip_setup
        expense = await _record(db_session, trip, analyst)
        stranger = await make_driver(db_session)

        with pytest.raises(Forbidden):
            await expenses.delete_expense(db_session, expense.id, stranger)
        await expenses.delete_expense(db_session, expense.id, driver)
        assert await ExpenseRepository(db_session).find() == []
