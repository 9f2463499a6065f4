from datetime import datetime, timedelta

from app.models.reservation import Reservation, ReservationStatus
from app.utils.timezones import local_today

RES = "/api/v1/reservation"


async def book(client, account, table, day, slot="18:00", party_size=2):
    return await client.post(
        f"{RES}/book",
        json={"table_id": table.id, "date": day, "slot": slot, "party_size": party_size},
        headers=account.headers,
    )


async def test_book_reservation(client, customer, make_table, future_day):
    table = await make_table(capacity=4)
    resp = await book(client, customer, table, future_day)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["status"] == "Pending"
    assert data["reservation_date"] == f"{future_day}T18:00:00"
    assert data["table"]["number"] == 1


async def test_booked_slot_rejected_until_cancelled(client, customer, other_customer, make_table, future_day):
    table = await make_table()
    first = await book(client, customer, table, future_day)

    resp = await book(client, other_customer, table, future_day)
    assert resp.status_code == 409

    resp = await client.patch(f"{RES}/cancel/{first.json()['data']['id']}", headers=customer.headers)
    assert resp.json()["data"]["status"] == "Cancelled"

    resp = await book(client, other_customer, table, future_day)
    assert resp.status_code == 201


async def test_same_table_other_slot_is_fine(client, customer, make_table, future_day):
    table = await make_table()
    await book(client, customer, table, future_day, slot="18:00")
    resp = await book(client, customer, table, future_day, slot="20:00")
    assert resp.status_code == 201


async def test_slot_outside_schedule_rejected(client, customer, make_table, future_day):
    table = await make_table()
    resp = await book(client, customer, table, future_day, slot="17:00")
    assert resp.status_code == 400


async def test_past_date_rejected(client, customer, make_table):
    table = await make_table()
    yesterday = (local_today() - timedelta(days=1)).isoformat()
    resp = await book(client, customer, table, yesterday)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot book a reservation in the past"


async def test_table_checks(client, customer, make_table, future_day):
    small = await make_table(number=1, capacity=2)
    closed = await make_table(number=2, capacity=6, is_active=False)

    resp = await book(client, customer, small, future_day, party_size=3)
    assert resp.status_code == 400
    resp = await book(client, customer, closed, future_day)
    assert resp.status_code == 400

    resp = await client.post(
        f"{RES}/book",
        json={"table_id": "missing", "date": future_day, "slot": "18:00"},
        headers=customer.headers,
    )
    assert resp.status_code == 404


async def test_only_admin_confirms(client, customer, admin, make_table, future_day):
    table = await make_table()
    reservation_id = (await book(client, customer, table, future_day)).json()["data"]["id"]

    resp = await client.patch(f"{RES}/{reservation_id}", json={"status": "confirmed"}, headers=customer.headers)
    assert resp.status_code == 403

    resp = await client.patch(f"{RES}/{reservation_id}", json={"status": "confirmed"}, headers=admin.headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "Confirmed"


async def test_customer_reschedule_resets_confirmation(client, customer, admin, make_table, future_day):
    table = await make_table(number=1)
    other_table = await make_table(number=2)
    reservation_id = (await book(client, customer, table, future_day)).json()["data"]["id"]
    await client.patch(f"{RES}/{reservation_id}", json={"status": "confirmed"}, headers=admin.headers)

    resp = await client.patch(
        f"{RES}/{reservation_id}", json={"table_id": other_table.id, "slot": "22:00"}, headers=customer.headers
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["reservation_date"] == f"{future_day}T22:00:00"
    assert data["table_id"] == other_table.id
    assert data["status"] == "Pending"

    await client.patch(f"{RES}/{reservation_id}", json={"status": "confirmed"}, headers=admin.headers)
    resp = await client.patch(f"{RES}/{reservation_id}", json={"slot": "20:00"}, headers=admin.headers)
    assert resp.json()["data"]["status"] == "Confirmed"


async def test_reschedule_rechecks_conflicts(client, customer, other_customer, make_table, future_day):
    table = await make_table()
    await book(client, other_customer, table, future_day, slot="20:00")
    mine = (await book(client, customer, table, future_day, slot="18:00")).json()["data"]

    resp = await client.patch(f"{RES}/{mine['id']}", json={"slot": "20:00"}, headers=customer.headers)
    assert resp.status_code == 409

    resp = await client.patch(f"{RES}/{mine['id']}", json={"slot": "22:00", "party_size": 3}, headers=customer.headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["reservation_date"] == f"{future_day}T22:00:00"
    assert resp.json()["data"]["party_size"] == 3


async def test_cancelled_reservation_is_final(client, customer, make_table, future_day):
    table = await make_table()
    reservation_id = (await book(client, customer, table, future_day)).json()["data"]["id"]
    await client.patch(f"{RES}/cancel/{reservation_id}", headers=customer.headers)

    resp = await client.patch(f"{RES}/cancel/{reservation_id}", headers=customer.headers)
    assert resp.status_code == 400
    resp = await client.patch(f"{RES}/{reservation_id}", json={"slot": "20:00"}, headers=customer.headers)
    assert resp.status_code == 400


async def test_reservations_are_private(client, customer, other_customer, admin, make_table, future_day):
    table = await make_table()
    reservation_id = (await book(client, customer, table, future_day)).json()["data"]["id"]

    assert (await client.get(f"{RES}/{reservation_id}", headers=other_customer.headers)).status_code == 403
    assert (await client.get(f"{RES}/{reservation_id}", headers=admin.headers)).status_code == 200

    mine = await client.get(f"{RES}/my-reservations", headers=customer.headers)
    assert [r["id"] for r in mine.json()["data"]] == [reservation_id]
    theirs = await client.get(f"{RES}/my-reservations", headers=other_customer.headers)
    assert theirs.json()["data"] == []


async def test_available_slots_exclude_booked_tables(client, customer, make_table, future_day):
    t1 = await make_table(number=1, capacity=4)
    await make_table(number=2, capacity=2)
    await book(client, customer, t1, future_day, slot="20:00")

    resp = await client.get(f"{RES}/available-slots?date={future_day}&party_size=2")
    slots = {s["slot"]: [t["number"] for t in s["available_tables"]] for s in resp.json()["data"]}
    assert slots == {"16:00": [1, 2], "18:00": [1, 2], "20:00": [2], "22:00": [1, 2]}

    resp = await client.get(f"{RES}/available-slots?date={future_day}&party_size=3")
    slots = {s["slot"]: [t["number"] for t in s["available_tables"]] for s in resp.json()["data"]}
    assert slots["20:00"] == []
    assert slots["18:00"] == [1]


async def test_admin_day_views(client, db, customer, admin, make_table, future_day):
    table = await make_table()
    await book(client, customer, table, future_day)

    today = local_today()
    db.add(Reservation(
        user_id=customer.id,
        table_id=table.id,
        reservation_date=datetime(today.year, today.month, today.day, 22, 0),
        party_size=2,
        status=ReservationStatus.CONFIRMED,
    ))
    await db.commit()

    resp = await client.get(f"{RES}/day?date={future_day}", headers=admin.headers)
    assert len(resp.json()["data"]) == 1
    resp = await client.get(f"{RES}/today", headers=admin.headers)
    assert [r["status"] for r in resp.json()["data"]] == ["Confirmed"]
    resp = await client.get(f"{RES}/day?date={future_day}", headers=customer.headers)
    assert resp.status_code == 403
    resp = await client.get(f"{RES}/day?date=not-a-date", headers=admin.headers)
    assert resp.status_code == 400


async def test_admin_lists_and_deletes(client, customer, admin, make_table, future_day):
    table = await make_table()
    first = (await book(client, customer, table, future_day, slot="18:00")).json()["data"]
    await book(client, customer, table, future_day, slot="20:00")
    await client.patch(f"{RES}/cancel/{first['id']}", headers=customer.headers)

    resp = await client.get(f"{RES}/all?status=cancelled", headers=admin.headers)
    body = resp.json()
    assert [r["id"] for r in body["data"]] == [first["id"]]
    assert body["pagination"]["totalReservations"] == 1

    resp = await client.get(f"{RES}/all?status=nope", headers=admin.headers)
    assert resp.status_code == 400

    resp = await client.delete(f"{RES}/{first['id']}", headers=customer.headers)
    assert resp.status_code == 403
    resp = await client.delete(f"{RES}/{first['id']}", headers=admin.headers)
    assert resp.status_code == 200
    resp = await client.get(f"{RES}/{first['id']}", headers=admin.headers)
    assert resp.status_code == 404
