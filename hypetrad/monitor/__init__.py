"""Logging for the simulator."""

from hypetrad.monitor.logger import LogContext, get_trade_logger, setup_logging

__all__ = [
    "LogContext",
    "setup_logging",
    "get_trade_logger",
]
