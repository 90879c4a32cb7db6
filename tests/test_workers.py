"""
Tests for the Qt background workers.
"""

import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from proflow.models.template_type import TemplateType  # noqa: E402
from proflow.services import container_codec  # noqa: E402
from proflow.services.playlist_bundler import BundleEntry, PlaylistBundler, read_bundle  # noqa: E402
from proflow.services.presentation_generator import GenerationRequest  # noqa: E402
from proflow.ui.workers import BundleRunnable, GenerationRunnable  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    app = QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])
    yield app


class TestGenerationRunnable:
    """Tests for GenerationRunnable."""

    def test_finished(self, qapp, generator, temp_dir):
        """A successful run emits the result."""
        path = temp_dir / "grace.pro"
        request = GenerationRequest.from_text("Grace", TemplateType.SONG, "Amazing grace")
        runnable = GenerationRunnable(generator, request, str(path))
        results, errors = [], []
        runnable.signals.finished.connect(lambda value: results.append(value))
        runnable.signals.error.connect(lambda message: errors.append(message))

        runnable.run()

        assert errors == []
        assert results[0].path == str(path)
        assert container_codec.read_document(str(path)).name == "Grace"

    def test_error(self, qapp, generator, temp_dir):
        """A failing run emits the error message."""
        request = GenerationRequest.from_text("Empty", TemplateType.SONG, "")
        runnable = GenerationRunnable(generator, request, str(temp_dir / "empty.pro"))
        results, errors = [], []
        runnable.signals.finished.connect(lambda value: results.append(value))
        runnable.signals.error.connect(lambda message: errors.append(message))

        runnable.run()

        assert results == []
        assert "no text" in errors[0]


class TestBundleRunnable:
    """Tests for BundleRunnable."""

    def test_finished(self, qapp, settings, identifiers, template_bytes, temp_dir):
        """A successful run emits the bundle path."""
        entries = [BundleEntry(name="One", data=template_bytes)]
        runnable = BundleRunnable(PlaylistBundler(settings, identifiers), entries,
                                  str(temp_dir / "sunday"), "Sunday")
        results = []
        runnable.signals.finished.connect(lambda value: results.append(value))

        runnable.run()

        assert results == [str(temp_dir / "sunday.proplaylist")]
        assert len(read_bundle(results[0]).items) == 1
