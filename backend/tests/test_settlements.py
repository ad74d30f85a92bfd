def add_expense(client, headers, gid, payer, amount, participants, **extra):
    res = client.post("/api/expenses", json={
        "group_id": gid, "payer_id": payer, "amount": amount,
        "participant_ids": participants, **extra,
    }, headers=headers)
    assert res.status_code == 200
    return res.json()


def test_three_way_split_simplifies_to_two_payments(client, auth_headers, trio):
    gid, uid_a, uid_b, uid_c = trio
    add_expense(client, auth_headers, gid, uid_c, 90.0, [uid_a, uid_b, uid_c], description="Groceries")

    res = client.get(f"/api/balances/group/{gid}", headers=auth_headers)
    assert res.status_code == 200
    assert {b["user_id"]: b["amount"] for b in res.json()} == {uid_a: -30.0, uid_b: -30.0, uid_c: 60.0}
    assert res.json()[0]["name"] == "User Three"

    res = client.get(f"/api/balances/group/{gid}/simplified", headers=auth_headers)
    assert res.status_code == 200
    assert sorted((d["from_user_id"], d["to_user_id"], d["amount"]) for d in res.json()) == sorted([
        (uid_a, uid_c, 30.0),
        (uid_b, uid_c, 30.0),
    ])


def test_balances_list_every_member(client, auth_headers, trio):
    gid, uid_a, uid_b, uid_c = trio
    add_expense(client, auth_headers, gid, uid_a, 100.0, [uid_a, uid_b])
    balances = {b["user_id"]: b["amount"] for b in client.get(
        f"/api/balances/group/{gid}", headers=auth_headers).json()}
    assert balances == {uid_a: 50.0, uid_b: -50.0, uid_c: 0.0}


def test_settle_up_clears_debt(client, auth_headers, trio):
    gid, uid_a, uid_b, _ = trio
    add_expense(client, auth_headers, gid, uid_a, 100.0, [uid_a, uid_b])
    res = client.post("/api/balances/settle", json={
        "group_id": gid, "from_user_id": uid_b, "to_user_id": uid_a, "amount": 50.0, "notes": "cash"
    }, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["amount"] == 50.0
    assert res.json()["notes"] == "cash"

    assert client.get(f"/api/balances/group/{gid}/simplified", headers=auth_headers).json() == []
    history = client.get(f"/api/balances/settlements/{gid}", headers=auth_headers).json()
    assert [(s["from_user_id"], s["to_user_id"], s["amount"]) for s in history] == [(uid_b, uid_a, 50.0)]


def test_partial_payment_stops_at_first_obligation_that_does_not_fit(client, auth_headers, trio):
    gid, uid_a, uid_b, _ = trio
    add_expense(client, auth_headers, gid, uid_a, 40.0, [uid_a, uid_b], date="2024-01-01T09:00:00")
    add_expense(client, auth_headers, gid, uid_a, 50.0, [uid_a, uid_b], date="2024-02-01T09:00:00")

    client.post("/api/balances/settle", json={
        "group_id": gid, "from_user_id": uid_b, "to_user_id": uid_a, "amount": 30.0
    }, headers=auth_headers)
    # the 20 share from January is cleared, the 25 share from February is not
    balances = {b["user_id"]: b["amount"] for b in client.get(
        f"/api/balances/group/{gid}", headers=auth_headers).json()}
    assert balances[uid_b] == -25.0
    # the payment itself is still on record in full
    history = client.get(f"/api/balances/settlements/{gid}", headers=auth_headers).json()
    assert history[0]["amount"] == 30.0


def test_settle_with_self_is_rejected(client, auth_headers, trio):
    gid, uid_a, _, _ = trio
    res = client.post("/api/balances/settle", json={
        "group_id": gid, "from_user_id": uid_a, "to_user_id": uid_a, "amount": 10.0
    }, headers=auth_headers)
    assert res.status_code == 400
    assert client.get(f"/api/balances/settlements/{gid}", headers=auth_headers).json() == []


def test_settle_rejects_non_positive_amount_and_outsiders(client, auth_headers, trio):
    gid, uid_a, uid_b, _ = trio
    res = client.post("/api/balances/settle", json={
        "group_id": gid, "from_user_id": uid_b, "to_user_id": uid_a, "amount": 0
    }, headers=auth_headers)
    assert res.status_code == 400
    res = client.post("/api/balances/settle", json={
        "group_id": gid, "from_user_id": 9999, "to_user_id": uid_a, "amount": 5.0
    }, headers=auth_headers)
    assert res.status_code == 400


def test_my_balances_across_groups(client, auth_headers, trio):
    gid, uid_a, uid_b, uid_c = trio
    other = client.post("/api/groups", json={"name": "Work", "member_ids": [uid_b]}, headers=auth_headers).json()["id"]
    add_expense(client, auth_headers, gid, uid_a, 90.0, [uid_a, uid_b, uid_c])
    add_expense(client, auth_headers, other, uid_b, 25.0, [uid_a])

    res = client.get("/api/balances/me", headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["total_owed_to_you"] == 60.0
    assert data["total_you_owe"] == 25.0
    assert data["net_balance"] == 35.0
    assert {g["group_id"]: g["balance"] for g in data["groups"]} == {gid: 60.0, other: -25.0}


def test_dashboard(client, auth_headers, trio):
    gid, uid_a, uid_b, _ = trio
    add_expense(client, auth_headers, gid, uid_a, 60.0, [uid_a, uid_b], category="food")
    add_expense(client, auth_headers, gid, uid_a, 40.0, [uid_a, uid_b], category="transport")
    res = client.get(f"/api/balances/dashboard/{gid}", headers=auth_headers)
    assert res.status_code == 200
    data = res.json()
    assert data["total_expenses"] == 100.0
    assert data["expense_count"] == 2
    assert data["category_totals"] == {"food": 60.0, "transport": 40.0}
    assert data["your_balance"] == 50.0


def test_cent_sized_remainders_do_not_break_suggestions(client, auth_headers, trio):
    gid, uid_a, uid_b, uid_c = trio
    add_expense(client, auth_headers, gid, uid_a, 5.00, [uid_b])
    add_expense(client, auth_headers, gid, uid_b, 4.99, [uid_a])
    add_expense(client, auth_headers, gid, uid_a, 5.00, [uid_c])
    add_expense(client, auth_headers, gid, uid_c, 4.99, [uid_a])

    res = client.get(f"/api/balances/group/{gid}/simplified", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == []


def test_sub_cent_payment_never_over_settles(client, auth_headers, trio):
    gid, uid_a, uid_b, _ = trio
    add_expense(client, auth_headers, gid, uid_a, 10.01, [uid_b])
    res = client.post("/api/balances/settle", json={
        "group_id": gid, "from_user_id": uid_b, "to_user_id": uid_a, "amount": 10.005
    }, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["amount"] == 10.0
    balances = {b["user_id"]: b["amount"] for b in client.get(
        f"/api/balances/group/{gid}", headers=auth_headers).json()}
    assert balances[uid_b] == -10.01


def test_expense_dates_with_offsets_are_settled_in_utc_order(client, auth_headers, trio):
    gid, uid_a, uid_b, _ = trio
    # 08:00 UTC, recorded first
    add_expense(client, auth_headers, gid, uid_a, 50.0, [uid_a, uid_b], date="2024-01-01T08:00:00+00:00")
    # 05:00 UTC, though its wall-clock time reads later
    add_expense(client, auth_headers, gid, uid_a, 40.0, [uid_a, uid_b], date="2024-01-01T10:00:00+05:00")

    client.post("/api/balances/settle", json={
        "group_id": gid, "from_user_id": uid_b, "to_user_id": uid_a, "amount": 20.0
    }, headers=auth_headers)
    balances = {b["user_id"]: b["amount"] for b in client.get(
        f"/api/balances/group/{gid}", headers=auth_headers).json()}
    assert balances[uid_b] == -25.0

    listed = client.get(f"/api/expenses?group_id={gid}", headers=auth_headers).json()
    assert [e["amount"] for e in listed] == [50.0, 40.0]
