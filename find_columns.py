#!/usr/bin/env python3
"""
Column inspection script for the Notion Spotify album sync.
Lists the album database's properties and checks them against the column
mapping (defaults plus ALBUM_SYNC_<ROLE>_COLUMN overrides).
"""

import sys

from dotenv import load_dotenv
from notion_client.errors import APIResponseError

from shared.notion_api import NotionAPI
from shared.page_fields import plain_text
from shared.utils import get_database_id, get_notion_token
from syncs.albums.property_config import AlbumColumns
from syncs.albums.sync import check_columns


def find_columns(notion=None, database_id=None, columns=None) -> bool:
    """Print the database columns and report mapping problems."""
    database_id = database_id or get_database_id()
    if notion is None:
        notion_token = get_notion_token()
        if not notion_token:
            print("❌ NOTION_INTERNAL_INTEGRATION_SECRET (or NOTION_TOKEN) not found in environment variables")
            return False
        notion = NotionAPI(notion_token)

    if not database_id:
        print("❌ NOTION_ALBUMS_DATABASE_ID (or DATABASE_ID) not found in environment variables")
        return False

    columns = columns or AlbumColumns.from_env()

    try:
        print("🔍 Fetching database information...")
        database = notion.get_database(database_id)
    except APIResponseError as e:
        print(f"❌ Error: {e}")
        return False

    print(f"\n📊 Database: {plain_text(database.get('title', [])) or 'Untitled'}")
    print(f"🆔 Database ID: {database_id}")

    properties = database.get("properties", {})
    print(f"\n📋 Found {len(properties)} columns:")
    print("=" * 80)
    for name, prop in properties.items():
        print(f"Column: {name}")
        print(f"  Type: {prop.get('type', 'unknown')}")
        print(f"  ID: {prop.get('id', 'No ID')}")
        print("-" * 40)

    print("\n🧭 Column mapping:")
    for role in columns.roles():
        name = getattr(columns, role)
        print(f"  {role}: {name if name else '(not used)'}")

    problems = check_columns(database, columns)
    if problems:
        print("\n⚠️  Column mapping problems:")
        for problem in problems:
            print(f"  - {problem}")
        print("\n💡 Rename the columns in Notion or set ALBUM_SYNC_<ROLE>_COLUMN in your .env file")
        return False
    return True


def main():
    load_dotenv()
    print("🎵 Notion Spotify Album Sync - Column Finder")
    print("=" * 50)

    if find_columns():
        print("\n✅ Column mapping matches the database")
    else:
        print("\n❌ Column mapping does not match the database")
        sys.exit(1)


if __name__ == "__main__":
    main()
