"""
Record and projection types for the ledger data access layer.
Field names are snake_case in Python; every model also accepts and emits the
camelCase names used by ledger services and genesis documents.
"""
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class AccountType(str, Enum):
    """Signature scheme of an account."""
    SIG = "sig"
    MULTISIG = "multisig"


class BallotType(str, Enum):
    VOTE = "vote"
    UNVOTE = "unvote"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def of(cls, order: Union[str, "SortOrder"]) -> "SortOrder":
        return cls(str(order.value if isinstance(order, SortOrder) else order).lower())


def integer_text(value: Any) -> str:
    """Normalise an arbitrary precision, non-negative integer to decimal text."""
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError("must be an integer or decimal integer text")
    text = str(value).strip()
    if not text.isdigit():
        raise ValueError(f"{value!r} is not a non-negative decimal integer")
    return str(int(text))


class LedgerModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Account(LedgerModel):
    address: str
    type: AccountType = AccountType.SIG
    balance: str = "0"
    forging_public_key: Optional[str] = None
    next_forging_public_key: Optional[str] = None
    next_forging_key_index: Optional[int] = None
    multisig_public_key: Optional[str] = None
    next_multisig_public_key: Optional[str] = None
    next_multisig_key_index: Optional[int] = None
    sig_public_key: Optional[str] = None
    next_sig_public_key: Optional[str] = None
    next_sig_key_index: Optional[int] = None
    required_signature_count: Optional[int] = None
    update_height: Optional[int] = None

    @field_validator("balance", mode="before")
    @classmethod
    def check_balance(cls, value: Any) -> str:
        return integer_text(value)


class Delegate(LedgerModel):
    address: str
    vote_weight: str = "0"

    @field_validator("vote_weight", mode="before")
    @classmethod
    def check_vote_weight(cls, value: Any) -> str:
        return integer_text(value)


class Ballot(LedgerModel):
    """A voter's directive for one delegate. Immutable apart from active."""
    id: str
    voter_address: str
    delegate_address: str
    type: Optional[BallotType] = None
    active: bool = True


class SignedTransaction(LedgerModel):
    """Transaction as it appears inside a signed block, without block linkage.

    Fields that are specific to one transaction type are kept as extra
    attributes and survive storage unchanged.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: str
    type: str
    sender_address: str
    recipient_address: Optional[str] = None
    amount: Optional[str] = None
    fee: Optional[str] = None
    timestamp: int
    message: Optional[str] = None
    sender_signature: Optional[str] = None
    signatures: Optional[List[Any]] = None
    member_addresses: Optional[List[str]] = None
    required_signature_count: Optional[int] = None

    @field_validator("amount", "fee", mode="before")
    @classmethod
    def check_amounts(cls, value: Any) -> Optional[str]:
        return None if value is None else integer_text(value)

    @property
    def details(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class Transaction(SignedTransaction):
    """Transaction as archived: stamped with its block and position in it."""
    block_id: str
    index_in_block: int

    def sanitized(self) -> SignedTransaction:
        data = self.model_dump(exclude={"block_id", "index_in_block"})
        return SignedTransaction.model_validate(data)


class SimplifiedBlock(LedgerModel):
    """Block header without forger or aggregate signatures."""
    id: str
    height: int
    timestamp: int
    previous_block_id: Optional[str] = None
    forger_address: Optional[str] = None
    forging_public_key: Optional[str] = None
    next_forging_public_key: Optional[str] = None
    next_forging_key_index: Optional[int] = None
    number_of_transactions: Optional[int] = None
    synched: bool = False


class SignedBlock(SimplifiedBlock):
    """Block with its full signature set and transaction list, for verification and relay."""
    forger_signature: Optional[str] = None
    signatures: Optional[List[Any]] = None
    transactions: List[SignedTransaction] = Field(default_factory=list)


class GenesisAccount(LedgerModel):
    address: str
    balance: str
    type: Optional[AccountType] = None
    forging_public_key: Optional[str] = None
    next_forging_public_key: Optional[str] = None
    next_forging_key_index: Optional[int] = None
    multisig_public_key: Optional[str] = None
    next_multisig_public_key: Optional[str] = None
    next_multisig_key_index: Optional[int] = None
    sig_public_key: Optional[str] = None
    next_sig_public_key: Optional[str] = None
    next_sig_key_index: Optional[int] = None
    votes: List[str] = Field(default_factory=list)

    @field_validator("balance", mode="before")
    @classmethod
    def check_balance(cls, value: Any) -> str:
        return integer_text(value)

    def to_account(self) -> Account:
        data = self.model_dump(exclude={"votes", "type"})
        return Account(type=self.type or AccountType.SIG, update_height=0, **data)


class GenesisMultisigWallet(LedgerModel):
    address: str
    members: List[str]
    required_signature_count: int


class Genesis(LedgerModel):
    network_symbol: Optional[str] = None
    accounts: List[GenesisAccount] = Field(default_factory=list)
    multisig_wallets: List[GenesisMultisigWallet] = Field(default_factory=list)
