"""Tests for the pool-creation extraction gate."""

from decimal import Decimal

import pytest

from launch_radar.parsers.base_info import extract_base_info, extract_creator
from launch_radar.parsers.exceptions import MalformedTransaction
from launch_radar.parsers.solana_rpc.models import ParsedTransaction, TokenBalance

LP_OWNER = "5Q544fKrFoe6tsEbD7S8EmxGTJYAKtTVhAW5Q5pge4j1"
WSOL = "So11111111111111111111111111111111111111112"
NEW_MINT = "NewMint11111111111111111111111111111111111"
CREATOR = "Creator1111111111111111111111111111111111111"


def _pool_tx(post: list[TokenBalance], keys: list[str] | None = None) -> ParsedTransaction:
    return ParsedTransaction(
        signature="sig_pool",
        account_keys=[CREATOR, "other"] if keys is None else keys,
        post_token_balances=post,
    )


def test_extracts_non_quote_side():
    tx = _pool_tx([
        TokenBalance(mint=WSOL, owner=LP_OWNER, raw_amount=79_000_000_000, decimals=9),
        TokenBalance(mint=NEW_MINT, owner=LP_OWNER, raw_amount=206_900_000_000_000, decimals=6),
        TokenBalance(mint=NEW_MINT, owner=CREATOR, raw_amount=1, decimals=6),
    ])

    info = extract_base_info(tx, lp_owner=LP_OWNER, quote_mints={WSOL})
    assert info.mint_address == NEW_MINT
    assert info.decimals == 6
    assert info.lp_amount == Decimal("206900000")


def test_no_lp_owned_balance_is_malformed():
    """Balances owned by someone else do not describe a new pool."""
    tx = _pool_tx([TokenBalance(mint=NEW_MINT, owner=CREATOR, raw_amount=10, decimals=6)])
    with pytest.raises(MalformedTransaction):
        extract_base_info(tx, lp_owner=LP_OWNER, quote_mints={WSOL})


def test_only_quote_side_is_malformed():
    tx = _pool_tx([TokenBalance(mint=WSOL, owner=LP_OWNER, raw_amount=10, decimals=9)])
    with pytest.raises(MalformedTransaction):
        extract_base_info(tx, lp_owner=LP_OWNER, quote_mints={WSOL})


def test_creator_is_first_account_key():
    assert extract_creator(_pool_tx([])) == CREATOR


def test_missing_account_keys_is_malformed():
    with pytest.raises(MalformedTransaction):
        extract_creator(_pool_tx([], keys=[]))
