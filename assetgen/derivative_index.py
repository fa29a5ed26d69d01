"""
DerivativeIndex - Static lookup table of the WEBP derivatives on disk.
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from .source_asset import WEBP_EXTENSION

INDEX_FILENAME = 'index.json'


@dataclass
class DerivativeIndex:
    """
    Maps each derivative basename to its path relative to the images directory.

    Attributes:
        created_at: ISO timestamp when the index was built
        images: basename -> relative path (e.g., 'photo' -> 'webp/photo.webp')
    """
    created_at: str
    images: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(cls, derivative_dir: str) -> 'DerivativeIndex':
        """Build an index from the .webp files currently in derivative_dir."""
        dirname = os.path.basename(os.path.normpath(derivative_dir))
        images = {}
        for filename in sorted(os.listdir(derivative_dir)):
            basename, ext = os.path.splitext(filename)
            if ext != WEBP_EXTENSION or filename.startswith('.'):
                continue
            images[basename] = f"{dirname}/{filename}"
        return cls(created_at=datetime.now().isoformat(), images=images)

    def __len__(self) -> int:
        return len(self.images)

    def get(self, basename: str) -> Optional[str]:
        return self.images.get(basename)

    def to_dict(self) -> dict:
        return {'created_at': self.created_at, 'images': dict(self.images)}

    @classmethod
    def from_dict(cls, data: dict) -> 'DerivativeIndex':
        return cls(created_at=data['created_at'], images=dict(data.get('images', {})))

    def save(self, filepath: str) -> None:
        """Save index to a JSON file, replacing any previous one atomically."""
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent), prefix='.' + path.name, suffix='.part'
        )
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(self.to_dict(), f, indent=2, sort_keys=True)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    @classmethod
    def load(cls, filepath: str) -> 'DerivativeIndex':
        with open(filepath, 'r') as f:
            return cls.from_dict(json.load(f))


def regenerate_index(derivative_dir: str, filename: str = INDEX_FILENAME) -> DerivativeIndex:
    """Rebuild and save the index inside derivative_dir."""
    index = DerivativeIndex.build(derivative_dir)
    index.save(os.path.join(derivative_dir, filename))
    return index
