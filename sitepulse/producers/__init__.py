"""Producers of sink writes."""

from sitepulse.producers.sink_writer import SinkOp, SinkWriter

__all__ = ["SinkOp", "SinkWriter"]
