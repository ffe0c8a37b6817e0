#!/usr/bin/env python3
"""
Seed script: создаёт теги через API и (опционально) загружает им картинки.

Запуск:
    python scripts/seed_data.py
    python scripts/seed_data.py --pictures ./pictures   # cats.png → картинка тега "cats"
"""

import mimetypes
import os
import sys
from pathlib import Path

import requests

API_URL = os.getenv("TAGVAULT_API_URL", "http://localhost:8000/api/v1")
API_KEY = os.getenv("TAGVAULT_API_KEY", "dev-api-key-change-in-production")
HEADERS = {"X-API-Key": API_KEY}

TAGS = ["cats", "dogs", "birds", "landscapes", "architecture", "food"]


def create_tag(name: str) -> dict | None:
    response = requests.post(f"{API_URL}/tags", headers=HEADERS, json={"name": name})
    if response.status_code == 201:
        return response.json()
    if response.status_code == 409:
        print(f"  ⚠️ {name} already exists, skipping")
    else:
        print(f"Error creating tag {name}: {response.text}")
    return None


def upload_picture(tag_id: int, path: Path) -> bool:
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    with path.open("rb") as f:
        response = requests.put(
            f"{API_URL}/tags/{tag_id}/picture",
            headers=HEADERS,
            files={"picture": (path.name, f, content_type)},
        )
    if response.status_code != 200:
        print(f"Error uploading {path.name}: {response.text}")
        return False
    return True


def find_picture(pictures_dir: Path | None, tag_name: str) -> Path | None:
    if pictures_dir is None:
        return None
    for candidate in sorted(pictures_dir.glob(f"{tag_name}.*")):
        if candidate.is_file():
            return candidate
    return None


def main():
    pictures_dir = None
    if "--pictures" in sys.argv:
        pictures_dir = Path(sys.argv[sys.argv.index("--pictures") + 1])

    print("=" * 60)
    print("Seeding tags")
    print("=" * 60)

    created = 0
    uploaded = 0
    for name in TAGS:
        tag = create_tag(name)
        if not tag:
            continue
        created += 1
        print(f"  ✅ {name} (id={tag['id']})")

        picture = find_picture(pictures_dir, name)
        if picture and upload_picture(tag["id"], picture):
            uploaded += 1
            print(f"    🖼  {picture.name}")

    print("\n" + "=" * 60)
    print(f"✅ Done! Created {created} tags, uploaded {uploaded} pictures")
    print("=" * 60)


if __name__ == "__main__":
    main()
