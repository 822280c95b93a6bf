"""
Ballot ledger: the vote/unvote state machine over (voter, delegate) pairs.

Each pair is in one of three states: no ballot, active vote or active unvote.
Recording a ballot supersedes the opposing active ballot for the same pair by
deactivating it. Ballots are never deleted and only their active flag ever
changes.

Replays are recognised by ballot id alone. Applying a ballot whose id is
already stored does nothing and does not re-validate the pair.

Vote weight is not touched here. Whoever applies vote() or unvote() must add
or subtract the voter's balance on the delegate (see
DelegateRegistry.adjust_vote_weight) in the same commit group as the
balance-affecting transaction, so the two always move together.
"""
from typing import List, Optional, Union

import structlog

from .core.database import StorageEngine
from .core.repository import Repository
from .core.types import Ballot, BallotType
from .errors import AccountNotFoundError, VoterAlreadyVotedError, VoterNotVotingError

logger = structlog.get_logger()

BALLOTS_TABLE = "ballots"


class BallotLedger:

    def __init__(self, store: StorageEngine):
        self.repo = Repository(store, BALLOTS_TABLE, "id")
        self.accounts = Repository(store, "accounts", "address")

    def _active(self, ballot_type: BallotType, voter_address: str, delegate_address: str):
        return self.repo.where(
            active=True,
            type=ballot_type.value,
            voter_address=voter_address,
            delegate_address=delegate_address,
        )

    async def _is_replay(self, ballot: Ballot) -> bool:
        if await self.repo.exists(self.repo.key(ballot.id)):
            logger.debug("ballot_replay_ignored", ballot_id=ballot.id, type=ballot.type.value)
            return True
        return False

    async def _record(self, ballot: Ballot) -> None:
        await self.repo.insert(ballot.model_dump(mode="json"))
        logger.info("ballot_recorded",
                    ballot_id=ballot.id,
                    type=ballot.type.value,
                    voter_address=ballot.voter_address,
                    delegate_address=ballot.delegate_address)

    async def vote(self, ballot: Union[Ballot, dict]) -> None:
        """Record a vote ballot.

        Raises:
            VoterAlreadyVotedError: If the voter already has an active vote for the delegate.
        """
        ballot = Ballot.model_validate(ballot).model_copy(
            update={"type": BallotType.VOTE, "active": True}
        )
        if await self._is_replay(ballot):
            return

        voter, delegate = ballot.voter_address, ballot.delegate_address
        if await self.has_vote_for_delegate(voter, delegate):
            logger.warning("vote_rejected", ballot_id=ballot.id, voter_address=voter,
                           delegate_address=delegate, reason="already_voted")
            raise VoterAlreadyVotedError(voter, delegate)

        await self.repo.update({"active": False}, self._active(BallotType.UNVOTE, voter, delegate))
        await self._record(ballot)

    async def unvote(self, ballot: Union[Ballot, dict]) -> None:
        """Record an unvote ballot.

        Raises:
            VoterNotVotingError: Unless the pair has an active vote and no active unvote.
        """
        ballot = Ballot.model_validate(ballot).model_copy(
            update={"type": BallotType.UNVOTE, "active": True}
        )
        if await self._is_replay(ballot):
            return

        voter, delegate = ballot.voter_address, ballot.delegate_address
        active_votes = self._active(BallotType.VOTE, voter, delegate)
        has_no_vote = await self.repo.not_exist(active_votes)
        has_unvote = await self.repo.exists(self._active(BallotType.UNVOTE, voter, delegate))
        if has_no_vote or has_unvote:
            logger.warning("unvote_rejected", ballot_id=ballot.id, voter_address=voter,
                           delegate_address=delegate, reason="not_voting")
            raise VoterNotVotingError(voter, delegate)

        await self.repo.update({"active": False}, active_votes)
        await self._record(ballot)

    async def has_vote_for_delegate(self, voter_address: str, delegate_address: str) -> bool:
        return await self.repo.exists(self._active(BallotType.VOTE, voter_address, delegate_address))

    async def get_account_votes(self, voter_address: str) -> List[str]:
        """Addresses of the delegates the voter currently votes for."""
        if await self.accounts.not_exist(self.accounts.key(voter_address)):
            raise AccountNotFoundError(voter_address, role="Voter")
        rows = await self.repo.get(
            self.repo.where(active=True, type=BallotType.VOTE.value, voter_address=voter_address),
            order_by=(("id", "asc"),),
        )
        return [row["delegate_address"] for row in rows]

    async def find_ballot(self, ballot_id: str) -> Optional[Ballot]:
        row = await self.repo.first(self.repo.key(ballot_id))
        return Ballot.model_validate(row) if row else None
