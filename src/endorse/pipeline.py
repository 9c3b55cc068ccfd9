from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from .catalog import load_catalog, load_user_causes
from .config import CatalogPaths, PipelineConfig, RankingConfig
from .models import Catalog, UserCause
from .ranking import RankingAssembler


def run_pipeline(
    config: PipelineConfig,
    user_id: str,
    origin: Optional[tuple] = None,
    catalog: Optional[Catalog] = None,
    user_causes: Optional[Sequence[UserCause]] = None,
) -> Dict[str, Path]:
    paths = config.paths
    output_dir = paths.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    catalog = catalog if catalog is not None else load_catalog(paths)
    causes = tuple(user_causes) if user_causes is not None else load_user_causes(paths, user_id)

    assembler = RankingAssembler(catalog, config.scoring, config.ranking)
    brands = assembler.rank_brands(causes)
    businesses = assembler.rank_businesses(
        causes,
        origin,
        max_range_miles=config.max_range_miles,
        sort_direction=config.sort_direction,
    )

    outputs = {
        "brand_scores": output_dir / "brand_scores.csv",
        "business_scores": output_dir / "business_scores.csv",
        "metadata": output_dir / "metadata.json",
    }

    brands.to_frame().to_csv(outputs["brand_scores"], index=False)
    businesses.to_frame().to_csv(outputs["business_scores"], index=False)

    metadata = {
        "user_id": user_id,
        "n_causes": len(causes),
        "n_brands": len(catalog.brands),
        "n_businesses": len(catalog.businesses),
        "scoring_available": brands.scoring_available,
        "n_aligned_brands": len(brands.aligned),
        "n_unaligned_brands": len(brands.unaligned),
        "n_businesses_in_range": len(businesses.all),
        "n_aligned_businesses": len(businesses.aligned),
        "n_unaligned_businesses": len(businesses.unaligned),
        "origin": list(origin) if origin else None,
        "max_range_miles": config.max_range_miles,
    }
    outputs["metadata"].write_text(json.dumps(metadata, indent=2))
    return outputs


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rank the brand and business catalog against one user's declared values."
    )
    parser.add_argument("--data-dir", type=str, default="data/catalog", help="Directory containing catalog CSVs.")
    parser.add_argument("--output-dir", type=str, default="output/endorse", help="Where to place generated tables.")
    parser.add_argument("--user-causes", type=str, default="", help="Optional CSV with user causes (defaults to data-dir).")
    parser.add_argument("--user-id", type=str, required=True, help="User whose causes drive the ranking.")
    parser.add_argument("--lat", type=float, default=None, help="Origin latitude for the local business view.")
    parser.add_argument("--lng", type=float, default=None, help="Origin longitude for the local business view.")
    parser.add_argument("--range-miles", type=float, default=None, help="Range cutoff in miles (omit for no cutoff).")
    parser.add_argument("--sort", choices=["highToLow", "lowToHigh"], default="highToLow", help="Order of the full business list.")
    parser.add_argument("--workers", type=int, default=0, help="Thread pool size for brand scoring (0 = serial).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    paths = CatalogPaths(
        data_dir=Path(args.data_dir),
        output_dir=Path(args.output_dir),
        user_causes_csv=Path(args.user_causes) if args.user_causes else None,
    )
    config = PipelineConfig(
        paths=paths,
        ranking=RankingConfig(max_workers=args.workers or None),
        max_range_miles=args.range_miles,
        sort_direction=args.sort,
    )
    origin = (args.lat, args.lng) if args.lat is not None and args.lng is not None else None
    run_pipeline(config, args.user_id, origin=origin)
    print(f"[endorse] Ranking artifacts saved to: {paths.output_dir.resolve()}")


if __name__ == "__main__":
    main()
