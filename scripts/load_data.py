#!/usr/bin/env python3
"""
Data Load Utility
Loads blog records from JSON files into the configured store.

Each file holds either {category: [record, ...], ...} or a list of records
for the category named by the file stem (accounts.json, articles.json, ...).
Ids given for categories with generated ids are remapped, and references to
them in later records are rewritten to the new ids.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from blogstore.core.blog import Blog
from blogstore.core.errors import BlogErrors
from blogstore.core.schema import SchemaIndex


def read_records(paths: List[Path]) -> Dict[str, List[Dict[str, Any]]]:
    """Collect records per category from the given files."""
    records: Dict[str, List[Dict[str, Any]]] = {}
    for path in paths:
        data = json.loads(path.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            for category, items in data.items():
                records.setdefault(category, []).extend(items)
        else:
            records.setdefault(path.stem, []).extend(data)
    return records


def load_order(schema: SchemaIndex, categories: List[str]) -> List[str]:
    """Order categories so referenced categories load before referencing ones."""
    ordered: List[str] = []

    def visit(category: str, path: tuple):
        if category in ordered or category in path:
            return
        for target in schema.identifies_of(category).values():
            visit(target, path + (category,))
        ordered.append(category)

    for category in categories:
        if schema.has_category(category):
            visit(category, ())
    return [c for c in ordered if c in categories]


def load(blog: Blog, records: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
    """Create all records and return the number created per category."""
    schema = blog.schema
    id_maps: Dict[str, Dict[str, str]] = {}
    created: Dict[str, int] = {}

    unknown = [c for c in records if not schema.has_category(c)]
    for category in unknown:
        print(f"WARNING: skipping unknown category {category}")

    for category in load_order(schema, list(records)):
        references = schema.identifies_of(category)
        derived = schema.is_derived(category)
        created[category] = 0
        for item in records[category]:
            spec = dict(item)
            old_id = spec.pop("id", None) if derived else spec.get("id")
            for field, target in references.items():
                if field in spec:
                    spec[field] = id_maps.get(target, {}).get(spec[field], spec[field])
            try:
                new_id = blog.create(category, spec)
            except BlogErrors as e:
                print(f"ERROR: {category} {old_id or ''}: {e}")
                continue
            if old_id is not None:
                id_maps.setdefault(category, {})[old_id] = new_id
            created[category] += 1
    return created


def main():
    parser = argparse.ArgumentParser(description="Load blog records from JSON files")
    parser.add_argument("files", nargs="+", type=Path, help="JSON data files")
    parser.add_argument("--clear", action="store_true", help="Remove all existing records first")
    args = parser.parse_args()

    blog = Blog.make()
    try:
        if args.clear:
            blog.clear()
            print("✓ Cleared existing records")

        created = load(blog, read_records(args.files))
        for category, count in created.items():
            print(f"✓ Loaded {count} {category}")
    finally:
        blog.close()


if __name__ == "__main__":
    main()
