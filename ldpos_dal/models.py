from sqlalchemy import Column, String, Integer, BigInteger, Boolean, Text, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class Account(Base):
    __tablename__ = 'accounts'

    address = Column(String(64), primary_key=True)
    type = Column(String(16), nullable=False, default='sig')
    balance = Column(String(80), nullable=False, default='0')  # integer text, never float
    forging_public_key = Column(String(128))
    next_forging_public_key = Column(String(128))
    next_forging_key_index = Column(Integer)
    multisig_public_key = Column(String(128))
    next_multisig_public_key = Column(String(128))
    next_multisig_key_index = Column(Integer)
    sig_public_key = Column(String(128))
    next_sig_public_key = Column(String(128))
    next_sig_key_index = Column(Integer)
    required_signature_count = Column(Integer)
    update_height = Column(BigInteger)

class Delegate(Base):
    __tablename__ = 'delegates'

    address = Column(String(64), primary_key=True)
    vote_weight = Column(String(80), nullable=False, default='0')

class Ballot(Base):
    __tablename__ = 'ballots'

    id = Column(String(128), primary_key=True)
    voter_address = Column(String(64), nullable=False)
    delegate_address = Column(String(64), nullable=False)
    type = Column(String(16), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('ix_ballots_voter_delegate', 'voter_address', 'delegate_address'),
    )

class MultisigMembership(Base):
    __tablename__ = 'multisig_memberships'

    multisig_account_address = Column(String(64), primary_key=True)
    member_address = Column(String(64), primary_key=True)

class Block(Base):
    __tablename__ = 'blocks'

    id = Column(String(128), primary_key=True)
    height = Column(BigInteger, nullable=False, unique=True)
    timestamp = Column(BigInteger, nullable=False, index=True)
    previous_block_id = Column(String(128))
    forger_address = Column(String(64))
    forging_public_key = Column(String(128))
    next_forging_public_key = Column(String(128))
    next_forging_key_index = Column(Integer)
    number_of_transactions = Column(Integer)
    forger_signature = Column(Text)
    signatures = Column(Text)  # opaque serialized blob
    synched = Column(Boolean, nullable=False, default=False)

class Transaction(Base):
    __tablename__ = 'transactions'

    id = Column(String(128), primary_key=True)
    type = Column(String(32), nullable=False)
    block_id = Column(String(128), nullable=False, index=True)
    index_in_block = Column(Integer, nullable=False)
    sender_address = Column(String(64), nullable=False, index=True)
    recipient_address = Column(String(64), index=True)
    amount = Column(String(80))
    fee = Column(String(80))
    timestamp = Column(BigInteger, nullable=False, index=True)
    message = Column(Text)
    sender_signature = Column(Text)
    signatures = Column(Text)  # opaque serialized blob
    member_addresses = Column(Text)  # comma delimited
    required_signature_count = Column(Integer)
    payload = Column(JSON)

class StoreItem(Base):
    __tablename__ = 'store'

    key = Column(String(255), primary_key=True)
    value = Column(Text)
