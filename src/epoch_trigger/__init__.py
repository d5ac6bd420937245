"""epoch_trigger - fires an on-chain action at epoch boundaries and sweeps the reward."""

__version__ = "0.1.0"
