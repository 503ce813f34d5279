"""
Pytest configuration and shared fixtures for test suite.
"""

import os
import shutil
import tempfile
import threading
from pathlib import Path

import pytest
from PIL import Image, ImageDraw

from findimagedupes.scanner import FingerprintError


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def temp_store_db(temp_dir):
    """Path for a temporary fingerprint database."""
    return str(temp_dir / "fingerprints.db")


SCENE_A = [
    ('rectangle', (0.05, 0.10, 0.45, 0.60), (220, 40, 40)),
    ('ellipse', (0.55, 0.05, 0.95, 0.40), (30, 30, 200)),
    ('rectangle', (0.30, 0.70, 0.90, 0.95), (250, 250, 250)),
]

SCENE_B = [
    ('ellipse', (0.10, 0.55, 0.50, 0.95), (10, 10, 10)),
    ('rectangle', (0.60, 0.10, 0.90, 0.90), (240, 200, 20)),
    ('ellipse', (0.05, 0.05, 0.35, 0.30), (250, 250, 250)),
]


def draw_scene(shapes, size=256):
    """Render shapes (fractional coordinates) on a grey background."""
    img = Image.new('RGB', (size, size), (120, 120, 120))
    draw = ImageDraw.Draw(img)
    for kind, (x0, y0, x1, y1), color in shapes:
        box = [x0 * size, y0 * size, x1 * size, y1 * size]
        getattr(draw, kind)(box, fill=color)
    return img


@pytest.fixture
def sample_images(temp_dir):
    """
    Create a set of real image files for testing.

    Returns:
        dict with paths to:
        - scene1.png, scene2.png (identical copies)
        - scene_small.png (same picture at a lower resolution)
        - other.png (visually different picture)
        - notes.txt (not an image)
    """
    images = {}

    scene = draw_scene(SCENE_A)
    for name in ('scene1', 'scene2'):
        path = temp_dir / f"{name}.png"
        scene.save(path, 'PNG')
        images[name] = str(path)

    path = temp_dir / "scene_small.png"
    draw_scene(SCENE_A, size=128).save(path, 'PNG')
    images['scene_small'] = str(path)

    path = temp_dir / "other.png"
    draw_scene(SCENE_B).save(path, 'PNG')
    images['other'] = str(path)

    path = temp_dir / "notes.txt"
    path.write_text("not an image")
    images['notes'] = str(path)

    return images


class FakeOracleFactory:
    """
    Creates FakeOracle instances and records every call they receive.

    Fingerprints are looked up by file name; names ending in .txt classify
    as text, names missing from the table fail to fingerprint.
    """

    def __init__(self, fingerprints, on_compute=None):
        self.fingerprints = dict(fingerprints)
        self.on_compute = on_compute
        self.classified = []
        self.computed = []
        self.created = 0
        self.closed = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.created += 1
        return FakeOracle(self)

    @property
    def calls(self):
        return len(self.classified) + len(self.computed)


class FakeOracle:
    """Stand-in for FingerprintOracle that never touches libmagic."""

    def __init__(self, factory):
        self.factory = factory

    def classify_file(self, path):
        with self.factory._lock:
            self.factory.classified.append(path)
        if os.path.basename(path).endswith('.txt'):
            return 'text/plain'
        return 'image/png'

    def compute_fingerprint(self, path):
        with self.factory._lock:
            self.factory.computed.append(path)
            count = len(self.factory.computed)
        if self.factory.on_compute is not None:
            self.factory.on_compute(path, count)
        name = os.path.basename(path)
        if name not in self.factory.fingerprints:
            raise FingerprintError("cannot decode image")
        return self.factory.fingerprints[name]

    def close(self):
        with self.factory._lock:
            self.factory.closed += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


@pytest.fixture
def make_files(temp_dir):
    """Create small files under temp_dir; returns their paths."""
    def _make(*names, base=None):
        root = Path(base) if base else temp_dir
        paths = []
        for name in names:
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(os.fsencode(name))
            paths.append(str(path))
        return paths
    return _make


@pytest.fixture
def oracle_factory():
    """Build a FakeOracleFactory from a name -> fingerprint table."""
    def _factory(fingerprints, on_compute=None):
        return FakeOracleFactory(fingerprints, on_compute=on_compute)
    return _factory
