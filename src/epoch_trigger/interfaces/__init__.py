"""Protocol interfaces for all epoch_trigger components."""

from epoch_trigger.interfaces.chain import ChainClient
from epoch_trigger.interfaces.claimer import RewardClaimer
from epoch_trigger.interfaces.oracle import SlotOracle, TimeOracle
from epoch_trigger.interfaces.relay import RelayDispatcher
from epoch_trigger.interfaces.signer import Signer
from epoch_trigger.interfaces.submitter import ActionSubmitter

__all__ = [
    "ChainClient",
    "RewardClaimer",
    "SlotOracle", "TimeOracle",
    "RelayDispatcher",
    "Signer",
    "ActionSubmitter",
]
