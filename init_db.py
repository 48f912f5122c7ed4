#!/usr/bin/env python3
"""
Initialize the translation history database.

Creates the tables for the per-user translation history and word vault.
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from data.database import DatabaseManager


def main():
    parser = argparse.ArgumentParser(
        description='Initialize translation history database'
    )
    parser.add_argument(
        '--database-url',
        type=str,
        default=None,
        help='Database URL (default: DATABASE_URL setting, sqlite:///manga_ocr.db)'
    )
    parser.add_argument(
        '--drop-existing',
        action='store_true',
        help='Drop existing tables before creating new ones (WARNING: destroys data!)'
    )

    args = parser.parse_args()

    db_manager = DatabaseManager(args.database_url)

    print("=" * 60)
    print("Translation History Database Initialization")
    print("=" * 60)
    print(f"Database URL: {db_manager.database_url}")
    print()

    if args.drop_existing:
        confirm = input("⚠️  Drop existing tables? This will DELETE ALL DATA! (yes/no): ")
        if confirm.lower() == 'yes':
            db_manager.drop_tables()
            print()
        else:
            print("Aborted.")
            return

    db_manager.create_tables()

    print()
    print("✓ Database initialized successfully!")
    print()
    print("Tables created:")
    print("  - translation_history")
    print("  - word_vault")
    print()
    print("You can now:")
    print("  1. Start the API server: uvicorn serving.reader_api:app --port 8002")
    print("  2. Translate a region: python translate_region.py page.png --region 0.1 0.1 0.3 0.2")
    print()


if __name__ == '__main__':
    main()
