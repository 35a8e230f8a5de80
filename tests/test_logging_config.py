import logging

import structlog

from wallet_auth.logging_config import bind_wallet_context, clear_wallet_context, setup_logging


def test_setup_logging_sets_root_level():
    setup_logging("WARNING")

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert logging.getLogger("eth_abi").level == logging.WARNING


def test_wallet_context_binding():
    bind_wallet_context("0xabc")
    assert structlog.contextvars.get_contextvars()["wallet"] == "0xabc"

    clear_wallet_context()
    assert "wallet" not in structlog.contextvars.get_contextvars()
