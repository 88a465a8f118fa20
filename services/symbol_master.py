# services/symbol_master.py
"""
Stock symbol master list for client-side search/autocomplete.

Built offline from the NSE equity list (EQUITY_L.csv) and the BSE scrip
master (Equity.csv). NSE takes priority when both list a ticker. The result
is a JSON array of {"ticker", "name", "exchange"} sorted by ticker.

    python -m services.symbol_master --nse EQUITY_L.csv --bse Equity.csv --out stocks.json
"""
from __future__ import annotations

import argparse
import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SYMBOL_MASTER_PATH = os.getenv("SYMBOL_MASTER_PATH", "data/stocks.json")

NSE_EQUITY_SERIES = {"EQ", "BE", "BZ"}


def _read_csv(path: Path) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    df.columns = [str(c).strip() for c in df.columns]
    return df.apply(lambda col: col.str.strip())


def _nse_records(df: pd.DataFrame) -> List[Dict[str, str]]:
    df = df[df["SERIES"].isin(NSE_EQUITY_SERIES)]
    return [
        {"ticker": row["SYMBOL"], "name": row["NAME OF COMPANY"], "exchange": "NSE"}
        for _, row in df.iterrows()
        if row["SYMBOL"]
    ]


def _bse_records(df: pd.DataFrame) -> List[Dict[str, str]]:
    return [
        {"ticker": row["Security Id"], "name": row["Security Name"], "exchange": "BSE"}
        for _, row in df.iterrows()
        if row["Security Id"]
    ]


def build_symbol_master(nse_path: Optional[Path] = None, bse_path: Optional[Path] = None) -> List[Dict[str, str]]:
    """Merge NSE then BSE listings; first occurrence of a ticker wins."""
    stocks: List[Dict[str, str]] = []
    seen: set[str] = set()

    sources = []
    if nse_path is not None and nse_path.exists():
        logger.info("Reading NSE data from %s", nse_path)
        sources.append(_nse_records(_read_csv(nse_path)))
    if bse_path is not None and bse_path.exists():
        logger.info("Reading BSE data from %s", bse_path)
        sources.append(_bse_records(_read_csv(bse_path)))

    for records in sources:
        for rec in records:
            if rec["ticker"] in seen:
                continue
            seen.add(rec["ticker"])
            stocks.append(rec)

    stocks.sort(key=lambda s: s["ticker"])
    logger.info("Total unique stocks: %d", len(stocks))
    return stocks


def write_symbol_master(stocks: List[Dict[str, str]], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(stocks, separators=(",", ":")), encoding="utf-8")


@lru_cache(maxsize=4)
def load_symbol_master(path: str = SYMBOL_MASTER_PATH) -> tuple:
    p = Path(path)
    if not p.exists():
        logger.warning("Symbol master not found at %s", path)
        return ()
    return tuple(json.loads(p.read_text(encoding="utf-8")))


def search_symbols(
    query: str,
    limit: int = 10,
    stocks: Optional[List[Dict[str, str]]] = None,
) -> List[Dict[str, str]]:
    """Exact ticker first, then ticker prefix, then name substring."""
    q = (query or "").strip().upper()
    if not q:
        return []
    pool = stocks if stocks is not None else load_symbol_master()

    exact: List[Dict[str, str]] = []
    prefix: List[Dict[str, str]] = []
    by_name: List[Dict[str, str]] = []
    for s in pool:
        ticker = (s.get("ticker") or "").upper()
        if ticker == q:
            exact.append(s)
        elif ticker.startswith(q):
            prefix.append(s)
        elif q in (s.get("name") or "").upper():
            by_name.append(s)

    return (exact + prefix + by_name)[: max(0, limit)]


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Build the stock symbol master list")
    parser.add_argument("--nse", type=Path, default=Path("EQUITY_L.csv"))
    parser.add_argument("--bse", type=Path, default=Path("Equity.csv"))
    parser.add_argument("--out", type=Path, default=Path(SYMBOL_MASTER_PATH))
    args = parser.parse_args(argv)

    from config.logging_config import configure_logging

    configure_logging()
    stocks = build_symbol_master(args.nse, args.bse)
    write_symbol_master(stocks, args.out)
    logger.info("Wrote %d symbols to %s", len(stocks), args.out)


if __name__ == "__main__":
    main()
