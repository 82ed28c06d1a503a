"""Headless watermark renderer - CLI entry point.

Applies a saved layer stack (JSON from services.layer_operations) to one or
more images and writes watermarked copies, optionally repairing a masked
region of each image first.

Usage:
    python -m headless <image> [<image> ...] [-l LAYERS] [-o OUTPUT_DIR]

Examples:
    python -m headless photo.jpg --text "© Studio"
    python -m headless shots/*.png -l layers.json --logo brand=logo.png -o out/
    python -m headless photo.png --mask scratch.png --iterations 60
"""

import sys
import os
import argparse
import logging

# Add editor/src to path so imports work
_src_dir = os.path.dirname(os.path.abspath(__file__))
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


def _parse_logo_arg(value):
    """'id=path' or plain 'path' (id = file stem)."""
    if '=' in value:
        asset_id, path = value.split('=', 1)
        return asset_id, path
    return os.path.splitext(os.path.basename(value))[0], value


def build_parser():
    parser = argparse.ArgumentParser(
        description='Apply watermark layers to images (headless).',
    )
    parser.add_argument(
        'images', nargs='+',
        help='Base images to watermark.',
    )
    parser.add_argument(
        '-l', '--layers',
        help='Layer stack JSON file (default: one default text layer).',
    )
    parser.add_argument(
        '-t', '--text',
        help='Override the text of every text layer.',
    )
    parser.add_argument(
        '--logo', action='append', default=[], metavar='[ID=]PATH',
        help='Register a logo asset; layers reference it by ID (default: file stem).',
    )
    parser.add_argument(
        '-o', '--output',
        default='./output',
        help='Output directory (default: ./output).',
    )
    parser.add_argument(
        '-f', '--format',
        help='Output format (PNG, JPEG, WEBP); default from the config, else the input extension.',
    )
    parser.add_argument(
        '--quality', type=int,
        help='JPEG quality 1-100.',
    )
    parser.add_argument(
        '--mask',
        help='Mask image (white/opaque = fill) applied to every input before watermarking.',
    )
    parser.add_argument(
        '--iterations', type=int,
        help='Diffusion passes for --mask.',
    )
    parser.add_argument(
        '--config',
        help='Config JSON (default: ~/.watermark_editor/config.json).',
    )
    parser.add_argument(
        '--save-config', action='store_true',
        help='Store the format, quality and iterations used by this run as the new defaults.',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging.',
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    from PIL import Image

    from models.document import Document
    from models.mask import MaskBuffer
    from models.raster import RasterImage
    from services.export import export_batch
    from services.inpainting import fill
    from services.layer_operations import load_layers
    from utils.config import load_config, save_config

    config = load_config(args.config)
    image_format = args.format or config.export_format
    quality = args.quality if args.quality is not None else config.jpeg_quality
    iterations = args.iterations if args.iterations is not None else config.inpaint_iterations
    if args.save_config:
        config.export_format = image_format.upper() if image_format else None
        config.jpeg_quality = quality
        config.inpaint_iterations = iterations
        save_config(config, args.config)

    document = Document()
    if args.layers:
        load_layers(args.layers, document.layers)
    if args.text is not None:
        for layer in document.layers:
            if layer.is_text:
                document.layers.update_layer(layer.id, text=args.text)

    for logo in args.logo:
        asset_id, path = _parse_logo_arg(logo)
        document.assets.add(RasterImage.open(path), name=os.path.basename(path), asset_id=asset_id)

    mask = None
    if args.mask:
        with Image.open(args.mask) as mask_image:
            mask = MaskBuffer.from_pil(mask_image)
        if mask.is_empty():
            print(f"Error: mask {args.mask} selects no pixels")
            return 1

    failed = 0
    for path in args.images:
        if not os.path.isfile(path):
            print(f"  [FAIL] {path}: file not found")
            failed += 1
            continue
        try:
            image = RasterImage.open(path)
            if mask is not None:
                image = fill(image, mask, iterations)
            document.add_image(image, os.path.basename(path))
        except (OSError, ValueError) as e:
            failed += 1
            print(f"  [FAIL] {path}: {e}")
            if args.verbose:
                import traceback
                traceback.print_exc()

    if not document.slots:
        print("No images to render.")
        return 1

    output_dir = os.path.abspath(args.output)
    written = export_batch(document, output_dir, image_format=image_format, quality=quality)
    for index, out_path in enumerate(written, 1):
        print(f"  [{index}/{len(written)}] {os.path.basename(out_path)}")

    print(f"\nDone. Rendered {len(written)} image(s) to {output_dir}/")
    if failed:
        print(f"  ({failed} failed)")
    return 0 if not failed else 2


if __name__ == '__main__':
    sys.exit(main())
