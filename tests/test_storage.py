"""Tests for the storage engine and the predicate builder."""
import asyncio

import pytest

from ldpos_dal.core.database import default_database_url
from ldpos_dal.core.predicates import Where
from ldpos_dal.errors import UnknownColumnError


def account_row(address, balance="0", **fields):
    row = {"address": address, "type": "sig", "balance": balance}
    row.update(fields)
    return row


def test_unknown_filter_column_is_rejected():
    with pytest.raises(UnknownColumnError):
        Where("accounts").eq("balance", "10")
    with pytest.raises(UnknownColumnError):
        Where.matching("transactions", amount="10")
    with pytest.raises(UnknownColumnError):
        Where("no_such_table")


def test_unknown_column_error_is_a_value_error():
    with pytest.raises(ValueError):
        Where("ballots").eq("weight", 1)


def test_either_requires_same_table():
    with pytest.raises(ValueError):
        Where("transactions").either(Where.matching("blocks", height=1))


@pytest.mark.asyncio
async def test_unsortable_column_is_rejected(store):
    with pytest.raises(UnknownColumnError):
        await store.find("accounts", order_by=(("forging_public_key", "asc"),))


@pytest.mark.asyncio
async def test_unknown_table_is_rejected(store):
    with pytest.raises(ValueError):
        await store.count("wallets")


@pytest.mark.asyncio
async def test_predicate_for_other_table_is_rejected(store):
    with pytest.raises(ValueError):
        await store.find("accounts", Where.matching("delegates", address="a"))


@pytest.mark.asyncio
async def test_upsert_inserts_then_updates(store):
    await store.upsert("accounts", account_row("alice", "10"), ["address"])
    await store.upsert("accounts", account_row("alice", "20", update_height=4), ["address"])

    rows = await store.find("accounts")
    assert len(rows) == 1
    assert rows[0]["balance"] == "20"
    assert rows[0]["update_height"] == 4


@pytest.mark.asyncio
async def test_upsert_of_key_only_row_is_a_no_op_on_conflict(store):
    row = {"multisig_account_address": "wallet", "member_address": "m1"}
    await store.upsert("multisig_memberships", row, ["multisig_account_address", "member_address"])
    await store.upsert("multisig_memberships", row, ["multisig_account_address", "member_address"])

    assert await store.count("multisig_memberships") == 1


@pytest.mark.asyncio
async def test_range_constraints_and_alternatives(store):
    for height in range(1, 6):
        await store.insert("blocks", {"id": f"b{height}", "height": height, "timestamp": height * 10})

    between = Where("blocks").gt("height", 1).lte("height", 4)
    assert [r["id"] for r in await store.find("blocks", between, order_by=(("height", "asc"),))] == ["b2", "b3", "b4"]

    edges = Where("blocks").either(Where.matching("blocks", height=1), Where("blocks").gte("timestamp", 50))
    assert [r["id"] for r in await store.find("blocks", edges, order_by=(("height", "desc"),))] == ["b5", "b1"]

    assert await store.count("blocks", Where("blocks").lt("timestamp", 30)) == 2


@pytest.mark.asyncio
async def test_numeric_text_columns_order_by_value(store):
    for address, balance in [("a", "10"), ("b", "9"), ("c", "100"), ("d", "99999999999999999999999")]:
        await store.insert("accounts", account_row(address, balance))

    rows = await store.find("accounts", order_by=(("balance", "asc"),))
    assert [r["address"] for r in rows] == ["b", "a", "c", "d"]


@pytest.mark.asyncio
async def test_offset_and_limit(store):
    for height in range(1, 6):
        await store.insert("blocks", {"id": f"b{height}", "height": height, "timestamp": height})

    rows = await store.find("blocks", order_by=(("height", "asc"),), offset=1, limit=2)
    assert [r["height"] for r in rows] == [2, 3]


@pytest.mark.asyncio
async def test_update_returns_row_count(store):
    for ballot_id in ("v1", "v2"):
        await store.insert("ballots", {
            "id": ballot_id, "voter_address": "alice", "delegate_address": "dlg", "type": "vote", "active": True,
        })

    updated = await store.update("ballots", Where.matching("ballots", voter_address="alice"), {"active": False})

    assert updated == 2
    assert not await store.exists("ballots", Where.matching("ballots", active=True))


@pytest.mark.asyncio
async def test_truncate_all(store):
    assert await store.are_all_tables_empty()

    await store.insert("store", {"key": "k", "value": "v"})
    await store.insert("accounts", account_row("alice"))
    assert not await store.are_all_tables_empty()

    await store.truncate_all()
    assert await store.are_all_tables_empty()


@pytest.mark.asyncio
async def test_delete_returns_row_count(store):
    for height in range(1, 4):
        await store.insert("blocks", {"id": f"b{height}", "height": height, "timestamp": height})

    assert await store.delete("blocks", Where("blocks").gte("height", 2)) == 2
    assert [r["id"] for r in await store.find("blocks")] == ["b1"]


@pytest.mark.asyncio
async def test_storage_calls_yield_to_the_event_loop(store):
    total = 50
    written = []
    observed = []

    async def write(index):
        await store.upsert("store", {"key": f"key-{index}", "value": str(index)}, ["key"])
        written.append(index)

    async def watch():
        while len(written) < total:
            observed.append(len(written))
            await asyncio.sleep(0)

    await asyncio.gather(watch(), *(write(index) for index in range(total)))

    assert sorted(written) == list(range(total))
    assert any(0 < count < total for count in observed)
    assert await store.count("store") == total


def test_default_database_lives_in_the_data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))

    url = default_database_url()

    assert url == f"sqlite:///{tmp_path / '.ldpos' / 'data' / 'ledger.db'}"
    assert (tmp_path / ".ldpos" / "data").is_dir()
