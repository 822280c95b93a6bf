"""Tests for multisig wallet registration preconditions and membership lookup."""
import pytest

from ldpos_dal.core.types import AccountType
from ldpos_dal.errors import (
    AccountNotFoundError, InvalidActionKind, MemberNotMultisigCapableError, MultisigWalletNotFoundError,
    NestedMultisigError,
)

from factories import make_account, make_multisig_member

WALLET = "wallet"


async def seed(dal, *accounts):
    for account in accounts:
        await dal.upsert_account(account)


@pytest.mark.asyncio
async def test_register_wallet(dal, store):
    await seed(dal, make_account(WALLET, "500"), make_multisig_member("m1"), make_multisig_member("m2"))

    await dal.register_multisig_wallet(WALLET, ["m2", "m1"], 2)

    wallet = await dal.get_account(WALLET)
    assert wallet.type == AccountType.MULTISIG
    assert wallet.required_signature_count == 2
    assert wallet.balance == "500"
    assert await dal.get_multisig_wallet_members(WALLET) == ["m1", "m2"]
    assert await store.count("multisig_memberships") == 2


@pytest.mark.asyncio
async def test_member_without_multisig_key_rejects_whole_registration(dal, store):
    await seed(dal, make_account(WALLET), make_multisig_member("m1"), make_account("plain"))

    with pytest.raises(MemberNotMultisigCapableError) as exc_info:
        await dal.register_multisig_wallet(WALLET, ["m1", "plain"], 1)

    assert exc_info.value.kind == InvalidActionKind.MEMBER_NOT_MULTISIG_CAPABLE
    assert exc_info.value.member_address == "plain"
    assert (await dal.get_account(WALLET)).type == AccountType.SIG
    assert await store.count("multisig_memberships") == 0


@pytest.mark.asyncio
async def test_nested_multisig_member_is_rejected(dal, store):
    await seed(dal, make_account(WALLET), make_multisig_member("m1"), make_multisig_member("m2"),
               make_multisig_member("inner"))
    await dal.register_multisig_wallet("inner", ["m1", "m2"], 2)
    memberships_before = await store.count("multisig_memberships")

    with pytest.raises(NestedMultisigError) as exc_info:
        await dal.register_multisig_wallet(WALLET, ["m1", "inner"], 1)

    assert exc_info.value.kind == InvalidActionKind.NESTED_MULTISIG
    wallet = await dal.get_account(WALLET)
    assert wallet.type == AccountType.SIG
    assert wallet.required_signature_count is None
    assert await store.count("multisig_memberships") == memberships_before


@pytest.mark.asyncio
async def test_missing_member_account_fails(dal, store):
    await seed(dal, make_account(WALLET), make_multisig_member("m1"))

    with pytest.raises(AccountNotFoundError) as exc_info:
        await dal.register_multisig_wallet(WALLET, ["m1", "ghost"], 1)

    assert exc_info.value.address == "ghost"
    assert (await dal.get_account(WALLET)).type == AccountType.SIG
    assert await store.count("multisig_memberships") == 0


@pytest.mark.asyncio
async def test_missing_wallet_account_fails(dal):
    await seed(dal, make_multisig_member("m1"))

    with pytest.raises(AccountNotFoundError) as exc_info:
        await dal.register_multisig_wallet(WALLET, ["m1"], 1)
    assert exc_info.value.kind == InvalidActionKind.ACCOUNT_NOT_FOUND


@pytest.mark.asyncio
async def test_account_without_memberships_is_not_a_wallet(dal):
    await seed(dal, make_account(WALLET))

    with pytest.raises(MultisigWalletNotFoundError) as exc_info:
        await dal.get_multisig_wallet_members(WALLET)
    assert exc_info.value.kind == InvalidActionKind.MULTISIG_WALLET_NOT_FOUND


@pytest.mark.asyncio
async def test_multisig_typed_account_without_memberships_is_not_a_wallet(dal):
    """State left behind by a crash between the account write and the membership writes."""
    await seed(dal, make_account(WALLET, type=AccountType.MULTISIG, required_signature_count=2),
               make_multisig_member("m1"), make_multisig_member("m2"))

    with pytest.raises(MultisigWalletNotFoundError):
        await dal.get_multisig_wallet_members(WALLET)

    await dal.register_multisig_wallet(WALLET, ["m1", "m2"], 2)
    assert await dal.get_multisig_wallet_members(WALLET) == ["m1", "m2"]


@pytest.mark.asyncio
async def test_reregistration_is_idempotent(dal, store):
    await seed(dal, make_account(WALLET), make_multisig_member("m1"), make_multisig_member("m2"))

    await dal.register_multisig_wallet(WALLET, ["m1", "m2"], 2)
    await dal.register_multisig_wallet(WALLET, ["m1", "m2"], 2)

    assert await store.count("multisig_memberships") == 2
    assert await dal.get_multisig_wallet_members(WALLET) == ["m1", "m2"]


@pytest.mark.asyncio
async def test_reregistration_updates_threshold(dal):
    await seed(dal, make_account(WALLET), make_multisig_member("m1"), make_multisig_member("m2"))

    await dal.register_multisig_wallet(WALLET, ["m1", "m2"], 2)
    await dal.register_multisig_wallet(WALLET, ["m1", "m2"], 1)

    assert (await dal.get_account(WALLET)).required_signature_count == 1


@pytest.mark.asyncio
async def test_wallet_cannot_be_its_own_member(dal, store):
    await seed(dal, make_multisig_member(WALLET), make_multisig_member("m1"))

    with pytest.raises(NestedMultisigError) as exc_info:
        await dal.register_multisig_wallet(WALLET, [WALLET, "m1"], 1)

    assert exc_info.value.member_address == WALLET
    assert (await dal.get_account(WALLET)).type == AccountType.SIG
    assert await store.count("multisig_memberships") == 0


@pytest.mark.asyncio
async def test_empty_member_list_is_rejected(dal, store):
    await seed(dal, make_account(WALLET))

    with pytest.raises(ValueError):
        await dal.register_multisig_wallet(WALLET, [], None)
    with pytest.raises(ValueError):
        await dal.register_multisig_wallet(WALLET, [], 1)

    wallet = await dal.get_account(WALLET)
    assert wallet.type == AccountType.SIG
    assert wallet.required_signature_count is None
    assert await store.count("multisig_memberships") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("required_signature_count", [None, 0, -1, 3, True, "2"])
async def test_threshold_must_be_between_one_and_member_count(dal, store, required_signature_count):
    await seed(dal, make_account(WALLET), make_multisig_member("m1"), make_multisig_member("m2"))

    with pytest.raises(ValueError):
        await dal.register_multisig_wallet(WALLET, ["m1", "m2"], required_signature_count)

    wallet = await dal.get_account(WALLET)
    assert wallet.type == AccountType.SIG
    assert wallet.required_signature_count is None
    assert await store.count("multisig_memberships") == 0


@pytest.mark.asyncio
async def test_threshold_may_equal_member_count(dal):
    await seed(dal, make_account(WALLET), make_multisig_member("m1"), make_multisig_member("m2"))

    await dal.register_multisig_wallet(WALLET, ["m1", "m2"], 2)

    assert (await dal.get_account(WALLET)).required_signature_count == 2
