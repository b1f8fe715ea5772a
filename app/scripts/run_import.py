#!/usr/bin/env python3
"""
Run a Breez → WooCommerce import from the command line.

Usage:
    python -m app.scripts.run_import categories
    python -m app.scripts.run_import products --page 3
    python -m app.scripts.run_import products --all-pages
    python -m app.scripts.run_import all

Reads the same .env as the API (see app/config.py).
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict

from app.logging_filters import install_html_trim_filter
from app.sync import sync
from app.sync.context import SyncContext

KINDS = ("categories", "brands", "products", "techs", "stocks", "all")


async def run(kind: str, page: int = 1, all_pages: bool = False) -> dict:
    ctx = SyncContext.from_settings()
    out: dict = {}

    if kind in ("categories", "all"):
        out["categories"] = await sync.import_categories(ctx)
    if kind in ("brands", "all"):
        out["brands"] = await sync.import_brands(ctx)
    if kind in ("products", "all"):
        if all_pages or kind == "all":
            reports = await sync.import_all_products(ctx, start_page=page)
            out["products"] = {
                "pages": len(reports),
                "created_ids": [pid for r in reports for pid in r.created_ids],
            }
        else:
            report = await sync.import_products(page, ctx=ctx)
            out["products"] = {k: v for k, v in report.to_dict().items() if k != "results"}
            out["products"]["failed"] = [asdict(r) for r in report.results if r.status == "failed"]
    if kind in ("techs", "all"):
        out["techs"] = await sync.import_all_product_techs(ctx)
    if kind in ("stocks", "all"):
        out["stocks"] = await sync.import_product_stocks(ctx)
    return out


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import the Breez catalog into WooCommerce.")
    parser.add_argument("kind", choices=KINDS)
    parser.add_argument("--page", type=int, default=1, help="product page to import (1-based)")
    parser.add_argument("--all-pages", action="store_true", help="walk every product page from --page on")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s | %(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)
    install_html_trim_filter()

    result = asyncio.run(run(args.kind, page=max(1, args.page), all_pages=args.all_pages))
    print(json.dumps(result, ensure_ascii=False, indent=2, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
