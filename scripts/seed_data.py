"""Seed a running notes API with sample notes.

Creates a fixed set of notes so the list, search and pagination endpoints
have something to show. Requires the API to be running.

Usage:
    python scripts/seed_data.py [--base-url http://localhost:3001]
"""

from __future__ import annotations

import argparse
import sys
import time

import requests

from notes_api.client import DEFAULT_BASE_URL, NotesClient

# Each entry: (title, content)
NOTES: list[tuple[str, str]] = [
    (
        "Project Ideas",
        "Build a code review assistant that runs static analysis on every "
        "pull request and posts a summary comment.",
    ),
    (
        "Meeting Notes",
        "Discussed migrating the monolith to services. Key decision: "
        "event-driven architecture with a message queue between services.",
    ),
    (
        "Reading List",
        "Attention Is All You Need; ReAct: Synergizing Reasoning and Acting; "
        "Designing Data-Intensive Applications.",
    ),
    ("Grocery list", "Eggs, milk, bread, coffee"),
    ("Quote", "Simple things should be simple, complex things should be possible."),
    ("", "A note with content but no title."),
]


def main() -> None:
    """Create every sample note and print a summary."""
    parser = argparse.ArgumentParser(description="Seed the notes API")
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Notes API base URL (default: {DEFAULT_BASE_URL})",
    )
    args = parser.parse_args()
    client = NotesClient(args.base_url)

    print(f"\n  Seeding notes via {client.base_url}")
    print("  " + "=" * 58)

    print("\n  [0/%d] Checking API health..." % len(NOTES))
    try:
        health = client.health()
    except requests.RequestException as e:
        print(f"  FAIL: API is not reachable: {e}")
        sys.exit(1)
    print(f"  OK: {health['notes']} notes stored, persistence {health['persistence']}.\n")

    start = time.time()
    created = 0
    for i, (title, content) in enumerate(NOTES, 1):
        label = title or "(untitled)"
        try:
            note = client.create_note(title=title, content=content)["data"]
            created += 1
            print(f"  [{i}/{len(NOTES)}] {label:<16} id={note['id']}")
        except requests.HTTPError as e:
            print(f"  [{i}/{len(NOTES)}] {label:<16} ERROR: {e}")

    total = client.list_notes(limit=0)["pagination"]["total"]
    print("\n  " + "=" * 58)
    print(f"  Done! {created}/{len(NOTES)} notes created in {time.time() - start:.2f}s.")
    print(f"  Notes now stored: {total}")
    print(f"  API docs: {client.base_url}/docs")
    print()


if __name__ == "__main__":
    main()
