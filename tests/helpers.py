from pathlib import Path


def _item_path(item) -> Path:
    # item.path exists from pytest 7 on
    return Path(item.path).resolve()


def mark_by_dir(items, base_dir, marker):
    """Add ``marker`` to every collected item living under ``base_dir``."""
    base = Path(base_dir).resolve()
    for item in items:
        if _item_path(item).is_relative_to(base):
            item.add_marker(marker)
