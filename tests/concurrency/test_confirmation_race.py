from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from garage_api.db.base import Base
from garage_api.db.models import Garage, RepairBay, Reservation, ReservationStatus, User, UserRole
from garage_api.services.reservation_service import update_reservation_status


@pytest.mark.concurrent
def test_two_parallel_confirmations_on_same_bay_only_one_wins(tmp_path):
    db_file = tmp_path / "race.db"
    engine = create_engine(f"sqlite+pysqlite:///{db_file}", connect_args={"check_same_thread": False})
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    seed_session = SessionLocal()
    operator = User(email="race-owner@example.com", hashed_password="x", role=UserRole.GARAGE_OWNER.value)
    customer = User(email="race-user@example.com", hashed_password="x", role=UserRole.USER.value)
    seed_session.add_all([operator, customer])
    seed_session.flush()
    garage = Garage(
        owner_id=operator.id,
        name="Race Garage",
        address="1 Track Road",
        phone="000",
        opening_time="08:00",
        closing_time="18:00",
        number_of_bays=1,
    )
    seed_session.add(garage)
    seed_session.flush()
    bay = RepairBay(garage_id=garage.id, bay_number=1, name="Bay 1", opening_time="08:00", closing_time="18:00")
    seed_session.add(bay)
    seed_session.flush()
    day = datetime.now(UTC).date() + timedelta(days=5)
    contenders = [
        Reservation(
            user_id=customer.id,
            garage_id=garage.id,
            repair_bay_id=bay.id,
            reservation_date=day,
            start_time=start_time,
            end_time=end_time,
            services=[],
            status=ReservationStatus.PENDING.value,
        )
        for start_time, end_time in (("09:00", "10:00"), ("09:30", "10:30"))
    ]
    seed_session.add_all(contenders)
    seed_session.commit()
    reservation_ids = [reservation.id for reservation in contenders]
    operator_id = operator.id
    seed_session.close()

    def attempt(reservation_id: int) -> str:
        session = SessionLocal()
        try:
            actor = session.get(User, operator_id)
            update_reservation_status(db=session, reservation_id=reservation_id, new_status="confirmed", actor=actor)
            return "confirmed"
        except HTTPException as exc:
            if exc.status_code in (400, 409):
                return "rejected"
            raise
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = list(pool.map(attempt, reservation_ids))

    assert sorted(results) == ["confirmed", "rejected"]

    check = SessionLocal()
    statuses = sorted(check.get(Reservation, reservation_id).status for reservation_id in reservation_ids)
    check.close()
    engine.dispose()

    assert statuses == ["cancelled", "confirmed"]
