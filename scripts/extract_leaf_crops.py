#!/usr/bin/env python3
"""
Leaf Crop Extraction Script - Run the segmentation pipeline offline

This script:
1. Reads an image file from disk
2. Runs the same pipeline the API uses
3. Writes each crop as a JPEG next to a JSON manifest of bounding boxes

Useful for tuning the SEGMENTATION_* settings against sample photos:
    python scripts/extract_leaf_crops.py photo.jpg --max-leaves 5 --out-dir ./crops
"""

import sys
import json
import base64
import asyncio
import logging
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from leafcrops.core.config import settings
from leafcrops.core.exceptions import LeafCropBaseException
from leafcrops.engines.leaf_crops import LeafCropService, SegmentationConfig

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def extract(image_path: Path, out_dir: Path, max_leaves: int) -> int:
    """Extract crops from ``image_path`` into ``out_dir``.

    Returns:
        Number of crops written
    """
    service = LeafCropService(config=SegmentationConfig.from_settings(settings))
    result = await service.analyze_bytes(image_path.read_bytes(), max_leaves)

    out_dir.mkdir(parents=True, exist_ok=True)
    manifest = {
        "source": str(image_path),
        "source_size": [result.source_width, result.source_height],
        "working_size": [result.working_width, result.working_height],
        "components_found": result.components_found,
        "components_kept": result.components_kept,
        "crops_skipped": result.crops_skipped,
        "processing_time_ms": result.processing_time_ms,
        "crops": [],
    }

    for rank, crop in enumerate(result.crops):
        _, _, payload = crop.data_url.partition(",")
        crop_path = out_dir / f"{image_path.stem}_leaf_{rank:02d}.jpg"
        crop_path.write_bytes(base64.b64decode(payload))
        manifest["crops"].append({"file": crop_path.name, "bbox": crop.bbox.model_dump()})
        logger.info(f"  [{rank}] {crop.bbox.model_dump()} -> {crop_path}")

    manifest_path = out_dir / f"{image_path.stem}_leaf_crops.json"
    manifest_path.write_text(json.dumps(manifest, indent=2))
    logger.info(f"Wrote {result.count} crops and manifest {manifest_path}")
    return result.count


def main():
    parser = argparse.ArgumentParser(
        description="Extract candidate leaf regions from an image"
    )
    parser.add_argument("image", type=Path, help="Path to the source image")
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=Path("./leaf_crops"),
        help="Directory for crops and manifest"
    )
    parser.add_argument(
        "--max-leaves",
        type=int,
        default=settings.DEFAULT_MAX_LEAVES,
        help="Maximum number of crops to extract"
    )
    args = parser.parse_args()

    if not args.image.is_file():
        parser.error(f"Image not found: {args.image}")

    try:
        asyncio.run(extract(args.image, args.out_dir, args.max_leaves))
    except LeafCropBaseException as e:
        logger.error(f"Extraction failed: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
