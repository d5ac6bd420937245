"""Claim sequencing under the sanity ceiling."""

from __future__ import annotations

from epoch_trigger.chain.claims import ClaimSequencer
from epoch_trigger.errors import SubmissionRejected
from epoch_trigger.models.records import ClaimStatus

from tests.conftest import TOKEN
from tests.mocks import rpc_down

CEILING = 1_000 * TOKEN


async def test_claims_balance_within_ceiling(mock_client):
    mock_client.rewards = 5 * TOKEN
    claimer = ClaimSequencer(mock_client, CEILING)

    outcome = await claimer.maybe_claim()

    assert outcome.status == ClaimStatus.CLAIMED
    assert outcome.balance == 5 * TOKEN
    assert outcome.tx_hash == "0x" + "cc" * 32
    assert mock_client.claim_calls == 1
    assert mock_client.rewards == 0


async def test_claims_exactly_at_ceiling(mock_client):
    mock_client.rewards = CEILING
    outcome = await ClaimSequencer(mock_client, CEILING).maybe_claim()

    assert outcome.status == ClaimStatus.CLAIMED


async def test_no_claim_one_unit_above_ceiling(mock_client):
    mock_client.rewards = CEILING + 1
    outcome = await ClaimSequencer(mock_client, CEILING).maybe_claim()

    assert outcome.status == ClaimStatus.ABOVE_CEILING
    assert outcome.is_warning
    assert mock_client.claim_calls == 0


async def test_zero_balance_skipped(mock_client):
    outcome = await ClaimSequencer(mock_client, CEILING).maybe_claim()

    assert outcome.status == ClaimStatus.SKIPPED_ZERO
    assert not outcome.is_warning
    assert mock_client.claim_calls == 0


async def test_balance_read_failure(mock_client):
    mock_client.rewards_error = rpc_down()
    outcome = await ClaimSequencer(mock_client, CEILING).maybe_claim()

    assert outcome.status == ClaimStatus.FAILED
    assert mock_client.claim_calls == 0


async def test_claim_reverted(mock_client):
    mock_client.rewards = 5 * TOKEN
    mock_client.claim_status = 0

    outcome = await ClaimSequencer(mock_client, CEILING).maybe_claim()

    assert outcome.status == ClaimStatus.FAILED
    assert outcome.error == "claim reverted"
    assert mock_client.rewards == 5 * TOKEN


async def test_claim_send_failure(mock_client):
    mock_client.rewards = 5 * TOKEN
    mock_client.claim_error = SubmissionRejected("claimRewards broadcast failed: underpriced")

    outcome = await ClaimSequencer(mock_client, CEILING).maybe_claim()

    assert outcome.status == ClaimStatus.FAILED
    assert "underpriced" in outcome.error


async def test_slot_oracle_closes_claims(mock_client, mock_slot_oracle):
    mock_client.rewards = 5 * TOKEN
    mock_slot_oracle.claimable = False

    outcome = await ClaimSequencer(mock_client, CEILING, mock_slot_oracle).maybe_claim()

    assert outcome.status == ClaimStatus.NOT_CLAIMABLE
    assert mock_client.claim_calls == 0


async def test_slot_oracle_allows_claims(mock_client, mock_slot_oracle):
    mock_client.rewards = 5 * TOKEN

    outcome = await ClaimSequencer(mock_client, CEILING, mock_slot_oracle).maybe_claim()

    assert outcome.status == ClaimStatus.CLAIMED
