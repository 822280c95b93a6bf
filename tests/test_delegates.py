"""Tests for delegate records, vote weight bookkeeping and ranking."""
import pytest
from pydantic import ValidationError

from ldpos_dal.core.types import SortOrder
from ldpos_dal.delegates import DelegateRegistry
from ldpos_dal.errors import DelegateNotFoundError, InvalidActionKind

from factories import make_delegate


@pytest.fixture
def delegates(store):
    return DelegateRegistry(store)


@pytest.mark.asyncio
async def test_ranking_descending_breaks_ties_by_address(delegates):
    for address, weight in [("dlg-c", "100"), ("dlg-b", "250"), ("dlg-a", "100"), ("dlg-d", "9"), ("dlg-e", "250")]:
        await delegates.upsert_delegate(make_delegate(address, weight))

    ranking = await delegates.get_delegates_by_vote_weight(0, 10, "desc")

    assert [d.address for d in ranking] == ["dlg-b", "dlg-e", "dlg-a", "dlg-c", "dlg-d"]


@pytest.mark.asyncio
async def test_ranking_ascending_keeps_address_tie_break_ascending(delegates):
    for address, weight in [("dlg-c", "100"), ("dlg-b", "250"), ("dlg-a", "100"), ("dlg-d", "9"), ("dlg-e", "250")]:
        await delegates.upsert_delegate(make_delegate(address, weight))

    ranking = await delegates.get_delegates_by_vote_weight(0, 10, SortOrder.ASC)

    assert [d.address for d in ranking] == ["dlg-d", "dlg-a", "dlg-c", "dlg-b", "dlg-e"]


@pytest.mark.asyncio
async def test_ranking_is_numeric_not_lexicographic(delegates):
    await delegates.upsert_delegate(make_delegate("small", "9"))
    await delegates.upsert_delegate(make_delegate("huge", "1000000000000000000000000"))
    await delegates.upsert_delegate(make_delegate("medium", "10"))

    ranking = await delegates.get_delegates_by_vote_weight(0, 10, "desc")

    assert [d.address for d in ranking] == ["huge", "medium", "small"]


@pytest.mark.asyncio
async def test_ranking_pagination(delegates):
    for index in range(6):
        await delegates.upsert_delegate(make_delegate(f"dlg-{index}", str(index * 10)))

    page = await delegates.get_delegates_by_vote_weight(2, 2, "desc")

    assert [d.address for d in page] == ["dlg-3", "dlg-2"]


@pytest.mark.asyncio
async def test_adjust_vote_weight_uses_exact_integer_arithmetic(delegates):
    await delegates.upsert_delegate(make_delegate("dlg", "123456789012345678901234567890"))

    updated = await delegates.adjust_vote_weight("dlg", 987654321098765432109876543210)
    assert updated.vote_weight == "1111111110111111111011111111100"

    updated = await delegates.adjust_vote_weight("dlg", "-1111111110111111111011111111100")
    assert updated.vote_weight == "0"
    assert (await delegates.get_delegate("dlg")).vote_weight == "0"


@pytest.mark.asyncio
async def test_adjust_vote_weight_cannot_go_negative(delegates):
    await delegates.upsert_delegate(make_delegate("dlg", "5"))

    with pytest.raises(ValueError):
        await delegates.adjust_vote_weight("dlg", -6)

    assert (await delegates.get_delegate("dlg")).vote_weight == "5"


@pytest.mark.asyncio
async def test_adjust_vote_weight_of_unknown_delegate_fails(delegates):
    with pytest.raises(DelegateNotFoundError):
        await delegates.adjust_vote_weight("ghost", 1)


@pytest.mark.asyncio
async def test_get_missing_delegate_fails(delegates):
    assert not await delegates.has_delegate("ghost")
    with pytest.raises(DelegateNotFoundError) as exc_info:
        await delegates.get_delegate("ghost")
    assert exc_info.value.kind == InvalidActionKind.DELEGATE_NOT_FOUND


@pytest.mark.asyncio
async def test_upsert_delegate_overwrites_vote_weight(delegates):
    await delegates.upsert_delegate({"address": "dlg", "voteWeight": "10"})
    await delegates.upsert_delegate({"address": "dlg", "voteWeight": 42})

    assert await delegates.has_delegate("dlg")
    assert (await delegates.get_delegate("dlg")).vote_weight == "42"


def test_vote_weight_rejects_floats():
    with pytest.raises(ValidationError):
        make_delegate("dlg", 1.5)
    with pytest.raises(ValidationError):
        make_delegate("dlg", "-3")
