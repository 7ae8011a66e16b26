"""Command-line interface for frameshop.

Provides the main entry point for starting the HTTP server, scanning a
single frame of a video from the terminal, and managing the library.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="frameshop",
        description="Shoppable-frame video viewer",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/frameshop.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("serve", help="Start the HTTP server")

    scan_parser = subparsers.add_parser("scan", help="Scan one frame of a video for products")
    target = scan_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--video-id", type=str, help="Library id of the video to scan")
    target.add_argument("--file", type=Path, help="Local video file to scan")
    scan_parser.add_argument(
        "--at", type=float, default=0.0,
        help="Playback position in seconds to capture (default: 0)",
    )
    scan_parser.add_argument(
        "--save", action="store_true",
        help="Store the discovered products in the library",
    )

    vid_parser = subparsers.add_parser("video-id", help="Extract the video id from a watch URL")
    vid_parser.add_argument("url", type=str)

    subparsers.add_parser("videos", help="List the videos in the library")

    add_parser = subparsers.add_parser("add", help="Add a video to the library")
    add_parser.add_argument("--title", type=str, required=True)
    add_parser.add_argument("--url", type=str, required=True)
    add_parser.add_argument(
        "--source-type", choices=("youtube", "upload"), default="youtube",
    )
    add_parser.add_argument("--description", type=str, default=None)

    return parser.parse_args(argv)


async def _scan(settings, args) -> int:
    """Open a video, seek, capture the frame and print what was found."""
    from frameshop.domain.models import ScanStatus
    from frameshop.library.memory import InMemoryLibraryStore
    from frameshop.library.sync import VideoLibrary
    from frameshop.viewer.builder import build_viewer

    library = None
    if args.file is not None:
        library = VideoLibrary(InMemoryLibraryStore())

    viewer = build_viewer(settings, library=library)
    try:
        if args.file is not None:
            record = await viewer.library.add_video(
                args.file.name, str(args.file), source_type="upload"
            )
            video_id = record.id
        else:
            video_id = args.video_id

        source = await viewer.open(video_id)
        if args.at:
            await viewer.seek_to(args.at)

        print(f"Scanning '{source.title}' at {args.at:.1f}s...")
        session = await viewer.scan()

        if session.status != ScanStatus.SUCCEEDED:
            print(f"Scan failed: {session.message}")
            return 1

        print(session.message)
        for product in session.products:
            print(
                f"  [{product.confidence * 100:.0f}%] {product.name} ({product.category})"
                f" @ ({product.position.x:.0f}%, {product.position.y:.0f}%)"
            )
            print(f"      {product.purchase_url}")

        if args.save and session.products:
            saved = await viewer.save_results()
            print(f"\nSaved {len(saved)} products to the library")
        return 0
    finally:
        await viewer.aclose()


async def _list_videos(settings) -> None:
    from frameshop.viewer.builder import build_library

    library = build_library(settings)
    try:
        videos = await library.refresh()
    finally:
        await library.aclose()

    if not videos:
        print("Library is empty.")
        return
    for video in videos:
        print(f"{video.id}  [{video.source_type}]  {video.title}")
        print(f"    {video.video_url}")


async def _add_video(settings, args) -> None:
    from frameshop.viewer.builder import build_library

    library = build_library(settings)
    try:
        record = await library.add_video(
            args.title, args.url, args.source_type, args.description
        )
    finally:
        await library.aclose()
    print(f"Added {record.id}: {record.title}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the frameshop CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    if args.command == "video-id":
        from frameshop.playback.sources import extract_video_id

        video_id = extract_video_id(args.url)
        if video_id is None:
            print(f"Unrecognized video URL: {args.url}", file=sys.stderr)
            sys.exit(1)
        print(video_id)
        return

    from frameshop.config.settings import load_settings
    from frameshop.library.base import LibraryError
    from frameshop.playback.base import PlaybackError
    from frameshop.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "serve":
        logger.info("Starting frameshop server")
        from frameshop.server.app import create_app
        import uvicorn

        app = create_app(settings)
        uvicorn.run(app, host=settings.server.host, port=settings.server.port)

    elif args.command == "scan":
        try:
            code = asyncio.run(_scan(settings, args))
        except (LibraryError, PlaybackError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        sys.exit(code)

    elif args.command == "videos":
        try:
            asyncio.run(_list_videos(settings))
        except LibraryError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    elif args.command == "add":
        try:
            asyncio.run(_add_video(settings, args))
        except (LibraryError, PlaybackError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
