"""
Command Line Interface for the image pipeline.
"""

import argparse
import json
import logging
import os
from typing import List, Optional

from .conversion_progress import ConversionProgress
from .derivative_index import regenerate_index
from .image_converter import ImageConverter
from .pipeline import ImagePipeline


def setup_logging(verbose: bool) -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('assetgen')


def default_images_dir() -> str:
    """Images directory from settings when available, else ./public/images."""
    try:
        import settings
        return settings.IMAGES_DIR
    except ImportError:
        return os.path.join(os.getcwd(), 'public', 'images')


def cmd_convert(args: argparse.Namespace) -> int:
    """Execute convert command."""
    logger = setup_logging(args.verbose)
    images_dir = args.images_dir or default_images_dir()

    logger.info(f"Images: {images_dir}")
    logger.info(f"Derivatives: {os.path.join(images_dir, args.webp_dirname)}")

    converter = ImageConverter(
        jpeg_quality=args.jpeg_quality,
        webp_quality=args.webp_quality,
        logger=logger
    )
    pipeline = ImagePipeline(
        images_dir,
        converter=converter,
        derivative_dirname=args.webp_dirname,
        max_workers=args.workers,
        logger=logger
    )

    progress = None
    if not args.quiet:
        progress = ConversionProgress(show_files=args.show_files, logger=logger)

    try:
        report = pipeline.run(progress=progress)
        if not args.no_index:
            index = regenerate_index(pipeline.derivative_dir)
            logger.info(f"Index: {len(index)} derivatives")
    except OSError as e:
        logger.error(f"Conversion failed: {e}")
        return 1

    print(json.dumps(report.to_dict()))
    return 0


def cmd_index(args: argparse.Namespace) -> int:
    """Execute index command."""
    logger = setup_logging(args.verbose)
    images_dir = args.images_dir or default_images_dir()
    derivative_dir = os.path.join(images_dir, args.webp_dirname)

    try:
        index = regenerate_index(derivative_dir)
    except OSError as e:
        logger.error(f"Index rebuild failed: {e}")
        return 1

    logger.info(f"Index: {len(index)} derivatives in {derivative_dir}")
    return 0


def add_directory_arguments(parser: argparse.ArgumentParser) -> None:
    """Add image directory arguments to a parser."""
    parser.add_argument('-d', '--images-dir', metavar='PATH',
                        help='Source images directory (default: settings.IMAGES_DIR)')
    parser.add_argument('--webp-dirname', default='webp',
                        help='Derivative subdirectory name (default: webp)')


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='assetgen',
        description='Promote PNG uploads to JPEG masters and generate WEBP derivatives',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m assetgen convert --images-dir public/images
  python -m assetgen index --images-dir public/images

Exit status is 0 whenever the batch completes, even if some files failed.
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    convert_parser = subparsers.add_parser('convert', help='Run one conversion batch')
    add_directory_arguments(convert_parser)
    convert_parser.add_argument('-w', '--workers', type=int, metavar='N',
                                help='Worker pool size (default: CPU count)')
    convert_parser.add_argument('--jpeg-quality', type=int, default=95,
                                help='Quality for promoted JPEG masters (default: 95)')
    convert_parser.add_argument('--webp-quality', type=int, default=80,
                                help='Quality for WEBP derivatives (default: 80)')
    convert_parser.add_argument('--no-index', action='store_true',
                                help='Do not rebuild the derivative index')
    convert_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress progress output')
    convert_parser.add_argument('--show-files', action='store_true',
                                help='Print each file with its outcome')
    convert_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    index_parser = subparsers.add_parser('index', help='Rebuild the derivative index only')
    add_directory_arguments(index_parser)
    index_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'convert':
        return cmd_convert(parsed_args)
    elif parsed_args.command == 'index':
        return cmd_index(parsed_args)

    return 1
