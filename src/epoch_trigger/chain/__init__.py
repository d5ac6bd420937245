"""EVM chain integration components."""

from epoch_trigger.chain.claims import ClaimSequencer
from epoch_trigger.chain.client import Web3ChainClient
from epoch_trigger.chain.oracle import ChainTimeOracle
from epoch_trigger.chain.signer import LocalAccountSigner
from epoch_trigger.chain.slots import Web3SlotOracle
from epoch_trigger.chain.submitter import DirectSubmitter, FanOutSubmitter

__all__ = [
    "ClaimSequencer",
    "Web3ChainClient",
    "ChainTimeOracle",
    "LocalAccountSigner",
    "Web3SlotOracle",
    "DirectSubmitter", "FanOutSubmitter",
]
