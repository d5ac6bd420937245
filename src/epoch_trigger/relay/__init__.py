"""Block-builder relay submission."""

from epoch_trigger.relay.fanout import HttpRelayFanOut, build_bundle_request

__all__ = ["HttpRelayFanOut", "build_bundle_request"]
