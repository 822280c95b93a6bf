"""Builders for ledger records used across the test suite."""
from ldpos_dal.core.types import Account, Delegate


def make_account(address, balance="0", **fields):
    return Account(address=address, balance=balance, **fields)


def make_multisig_member(address, balance="0"):
    return Account(address=address, balance=balance, multisig_public_key=f"{address}-msig-key")


def make_delegate(address, vote_weight="0"):
    return Delegate(address=address, vote_weight=vote_weight)


def make_transaction(tx_id, sender, recipient, timestamp, **fields):
    transaction = {
        "id": tx_id,
        "type": "transfer",
        "senderAddress": sender,
        "recipientAddress": recipient,
        "amount": "10",
        "fee": "1",
        "timestamp": timestamp,
        "senderSignature": f"{tx_id}-sig",
    }
    transaction.update(fields)
    return transaction


def make_block(height, block_id=None, timestamp=None, transactions=None, **fields):
    block = {
        "id": block_id or f"block-{height}",
        "height": height,
        "timestamp": timestamp if timestamp is not None else height * 30000,
        "previousBlockId": f"block-{height - 1}" if height > 1 else None,
        "forgerAddress": "forger",
        "forgingPublicKey": "forger-key",
        "nextForgingPublicKey": "forger-next-key",
        "nextForgingKeyIndex": height,
        "forgerSignature": f"forger-signature-{height}",
        "signatures": [
            {"signerAddress": "delegate-a", "signature": f"a-{height}"},
            {"signerAddress": "delegate-b", "signature": f"b-{height}"},
        ],
        "transactions": transactions or [],
    }
    block.update(fields)
    return block
