#!/usr/bin/env python3
"""
CLI runner for translating one region of a manga page.

Runs the same remote-first / local-fallback chain the reader uses and
optionally stores the result in the translation history.
"""
import argparse
import asyncio
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import settings
from core.errors import MangaOCRError
from core.models import Caller, NormalizedRegion, PageRef
from data.database import init_database, session_scope
from services.ocr_engine import tesseract_factory
from services.ocr_service import OCRService
from services.persistence import SQLPersistenceGateway
from services.remote_client import RemoteRecognitionClient
from services.translation_service import TranslationService
from utils.image_utils import load_image


def build_ocr_service(local_only: bool = False) -> OCRService:
    """Create the recognition service from settings."""
    translator = TranslationService(
        url=settings.translation_url,
        langpair=settings.translation_langpair,
        max_chars=settings.translation_max_chars,
        timeout=settings.translation_timeout
    )
    remote_client = None
    if not local_only:
        remote_client = RemoteRecognitionClient(
            url=settings.remote_ocr_url,
            timeout=settings.remote_ocr_timeout
        )

    config = settings.get_orchestrator_config()
    if local_only:
        config['remote_enabled'] = False

    return OCRService(
        engine_factory=tesseract_factory(settings.tesseract_cmd),
        translator=translator,
        remote_client=remote_client,
        **config
    )


async def translate_region_cli(
    image_path: str,
    region: NormalizedRegion,
    local_only: bool = False,
    remote_only: bool = False,
    token: str = None
):
    """Recognize and translate one region of an image file."""

    print("=" * 60)
    print(f"Translating region of: {image_path}")
    print("=" * 60)

    if not os.path.exists(image_path):
        print(f"❌ Error: File not found: {image_path}")
        return None

    image = load_image(image_path)
    print(f"Image size: {image.width}x{image.height}")
    print(f"Region: x={region.x:.4f} y={region.y:.4f} w={region.w:.4f} h={region.h:.4f}")
    print()

    service = build_ocr_service(local_only=local_only)
    try:
        outcome = await service.recognize_region(
            image,
            region,
            access_token=token,
            prefer_remote=False if local_only else None,
            remote_only=remote_only
        )
    except MangaOCRError as e:
        print(f"❌ {e}")
        return None
    finally:
        await service.translator.close()
        if service.remote_client is not None:
            await service.remote_client.close()

    result = outcome.result
    print(f"✓ Recognized via {outcome.source}" + (" (sparse retry)" if outcome.retried else ""))
    if outcome.remote_error:
        print(f"  Remote attempt failed: {outcome.remote_error}")
    print()
    print(f"OCR:         {result.text}")
    print(f"Romaji:      {result.phonetic or '-'}")
    if result.translated:
        print(f"Translation: {result.translated}")
    else:
        print(f"Translation: - ({outcome.translation_error or 'empty'})")
    print()

    return outcome


def save_to_history(outcome, region: NormalizedRegion, user_id: str, page_ref: PageRef):
    """Store a recognition outcome as a history row."""
    init_database()
    with session_scope() as session:
        gateway = SQLPersistenceGateway(session, Caller(user_id=user_id))
        history_id = gateway.create_history_entry(region, page_ref, outcome.result)
    print(f"✓ Saved to history: {history_id}")
    return history_id


def main():
    parser = argparse.ArgumentParser(
        description='Translate a region of a manga page'
    )
    parser.add_argument('image', type=str, help='Page image file')
    parser.add_argument(
        '--region',
        type=float,
        nargs=4,
        required=True,
        metavar=('X', 'Y', 'W', 'H'),
        help='Normalized region (fractions of the image size)'
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--local-only', action='store_true', help='Skip the remote function')
    mode.add_argument('--remote-only', action='store_true', help='Fail instead of falling back to local OCR')
    parser.add_argument('--token', type=str, default=None, help='Bearer token for the remote function')

    save_group = parser.add_argument_group('history')
    save_group.add_argument('--save', action='store_true', help='Store the result in the translation history')
    save_group.add_argument('--user', type=str, help='User id owning the history row')
    save_group.add_argument('--manga', type=str, help='Manga id')
    save_group.add_argument('--chapter', type=str, help='Chapter id')
    save_group.add_argument('--page', type=int, help='Page index (0-based)')

    args = parser.parse_args()

    try:
        region = NormalizedRegion(*args.region)
    except ValueError as e:
        parser.error(str(e))

    if args.save and not all([args.user, args.manga, args.chapter, args.page is not None]):
        parser.error('--save requires --user, --manga, --chapter and --page')

    outcome = asyncio.run(translate_region_cli(
        args.image,
        region,
        local_only=args.local_only,
        remote_only=args.remote_only,
        token=args.token
    ))
    if outcome is None:
        sys.exit(1)

    if args.save:
        try:
            save_to_history(
                outcome,
                region,
                args.user,
                PageRef(manga_id=args.manga, chapter_id=args.chapter, page_index=args.page)
            )
        except MangaOCRError as e:
            print(f"❌ Could not save: {e}")
            sys.exit(1)


if __name__ == '__main__':
    main()
