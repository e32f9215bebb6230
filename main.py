"""Main entry point for grouping a folder of face thumbnails by similarity."""

import json
import logging
import sys
import pandas as pd
from pathlib import Path
from typing import List

from facegroup.config import Config
from facegroup.models import GroupingResult, Thumbnail
from facegroup.pipeline import FaceGroupingPipeline
from facegroup.utils import get_image_files, guess_mime_type, setup_logging

logger = logging.getLogger("facegroup")


def load_thumbnails(input_dir: Path) -> List[Thumbnail]:
    """Read every image in a directory as one thumbnail, ordered by file name."""
    files = get_image_files(input_dir)
    return [
        Thumbnail(
            index=i,
            data=path.read_bytes(),
            mime_type=guess_mime_type(path),
            metadata={'file': path.name},
        )
        for i, path in enumerate(files)
    ]


def save_results(result: GroupingResult, output_dir: Path, stats: dict) -> None:
    """Save grouping results to files."""
    output_dir.mkdir(exist_ok=True, parents=True)
    logger.info(f"Writing outputs to {output_dir.resolve()}")

    groups_json = [
        {
            'group_id': i,
            'size': len(group),
            'files': [thumb.metadata.get('file') for thumb in group],
            'indices': [thumb.index for thumb in group],
        }
        for i, group in enumerate(result.groups)
    ]
    with open(output_dir / 'clusters.json', 'w', encoding='utf-8') as f:
        json.dump({
            'message': result.message,
            'groups': groups_json,
            'skipped': [
                {'index': s.index, 'reason': s.reason, 'detail': s.detail} for s in result.skipped
            ],
        }, f, indent=2)

    rows = []
    for i, group in enumerate(result.groups):
        for thumb in group:
            rows.append({
                'group_id': i,
                'index': thumb.index,
                'file': thumb.metadata.get('file', ''),
                'group_size': len(group),
            })
    pd.DataFrame(rows, columns=['group_id', 'index', 'file', 'group_size']).to_csv(
        output_dir / 'clusters.csv', index=False
    )

    with open(output_dir / 'statistics.json', 'w', encoding='utf-8') as f:
        json.dump(stats, f, indent=2)

    logger.info(f"- clusters.json: {len(result.groups)} groups")
    logger.info(f"- clusters.csv: {len(rows)} face-group mappings")


def run(input_dir: str, config: Config, show_progress: bool = True) -> GroupingResult:
    logger.info("Face Grouping Pipeline")
    logger.info("=" * 59)
    thumbnails = load_thumbnails(Path(input_dir))
    logger.info(f"Loaded {len(thumbnails)} thumbnails from {input_dir}")

    pipeline = FaceGroupingPipeline(config, show_progress=show_progress)
    result = pipeline.group_faces(thumbnails)

    stats = {
        'total_thumbnails': len(thumbnails),
        'grouped': sum(len(g) for g in result.groups),
        'skipped': len(result.skipped),
        'groups': len(result.groups),
        'threshold': config.SIMILARITY_THRESHOLD,
    }
    save_results(result, Path(config.OUTPUT_DIR), stats)
    logger.info("=" * 59)
    logger.info(result.message)
    return result


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(description='Face Thumbnail Grouping')
    parser.add_argument('--input', required=True, help='Directory of face thumbnails')
    parser.add_argument('--threshold', type=float, default=None,
                        help='Similarity threshold as a fraction of 64 bits (overrides config)')
    parser.add_argument('--max-workers', type=int, default=None, help='Worker pool size (overrides config)')
    parser.add_argument('--output', type=str, default=None, help='Output directory (overrides config)')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--no-progress', action='store_true', help='Disable progress bars')
    args = parser.parse_args(argv)

    overrides = {}
    if args.threshold is not None:
        overrides['SIMILARITY_THRESHOLD'] = args.threshold
    if args.max_workers is not None:
        overrides['MAX_WORKERS'] = args.max_workers
    if args.output is not None:
        overrides['OUTPUT_DIR'] = args.output
    try:
        config = Config(**overrides)
    except ValueError as e:
        parser.error(str(e))

    config.ensure_dirs()
    setup_logging(getattr(logging, args.log_level), str(Path(config.LOG_DIR) / 'facegroup.log'))

    if not Path(args.input).is_dir():
        logger.error(f"Input directory not found: {args.input}")
        return 1
    run(args.input, config, show_progress=not args.no_progress)
    return 0


if __name__ == '__main__':
    sys.exit(main())
