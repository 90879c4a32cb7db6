"""
Tests for template lookup and caching.
"""

import threading

import pytest

from conftest import build_template
from proflow.errors import TemplateNotFoundError
from proflow.models import Settings
from proflow.models.template_type import TemplateType
from proflow.services import container_codec
from proflow.services.template_cache import TemplateCache


class TestTemplateType:
    """Tests for template file naming."""

    def test_filenames(self):
        """Canonical and legacy names follow the category."""
        assert TemplateType.SONG.filename == "__template_song__.pro"
        assert TemplateType.SONG.legacy_filename == "__template__song.pro"

    def test_from_string(self):
        """Category names are case-insensitive."""
        assert TemplateType.from_string(" Scripture ") == TemplateType.SCRIPTURE

    def test_from_string_unknown(self):
        """Unknown names list the valid choices."""
        with pytest.raises(ValueError, match="scripture, song, info"):
            TemplateType.from_string("hymn")


class TestTemplateCache:
    """Tests for TemplateCache."""

    def test_missing_template_names_the_file(self, temp_dir):
        """The error names the expected filename and every searched folder."""
        cache = TemplateCache([str(temp_dir)])
        with pytest.raises(TemplateNotFoundError) as info:
            cache.get(TemplateType.SCRIPTURE)
        assert "__template_scripture__.pro" in str(info.value)
        assert str(temp_dir) in str(info.value)
        assert info.value.filename == "__template_scripture__.pro"

    def test_loads_once(self, cache):
        """Repeated requests return the same instance."""
        first = cache.get(TemplateType.SONG)
        second = cache.get(TemplateType.SONG)
        assert first is second
        assert cache.load_count == 1
        assert cache.source_of(TemplateType.SONG).endswith("__template_song__.pro")

    def test_concurrent_first_requests_load_once(self, cache):
        """Threads racing for an unloaded template share a single load."""
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(cache.get(TemplateType.SCRIPTURE))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(result is results[0] for result in results)
        assert cache.load_count == 1

    def test_legacy_filename_fallback(self, temp_dir, caplog):
        """An old-style file name is used, with a warning."""
        path = temp_dir / TemplateType.INFO.legacy_filename
        path.write_bytes(container_codec.encode(build_template("Legacy")))
        cache = TemplateCache([str(temp_dir)])

        with caplog.at_level("WARNING", logger="proflow"):
            document = cache.get(TemplateType.INFO)
        assert document.name == "Legacy"
        assert "legacy" in caplog.text.lower()

    def test_canonical_name_wins(self, temp_dir):
        """The canonical name is preferred over the legacy one."""
        (temp_dir / TemplateType.INFO.legacy_filename).write_bytes(
            container_codec.encode(build_template("Legacy")))
        (temp_dir / TemplateType.INFO.filename).write_bytes(
            container_codec.encode(build_template("Canonical")))
        cache = TemplateCache([str(temp_dir)])
        assert cache.get(TemplateType.INFO).name == "Canonical"

    def test_library_searched_first(self, temp_dir, templates_dir):
        """A template in the library folder overrides the default one."""
        library = temp_dir / "library"
        library.mkdir()
        (library / TemplateType.SONG.filename).write_bytes(
            container_codec.encode(build_template("From library")))
        settings = Settings(library_folder=str(library), templates_folder=str(templates_dir))
        cache = TemplateCache.from_settings(settings)
        assert cache.get(TemplateType.SONG).name == "From library"
        assert cache.get(TemplateType.INFO).name == "Info template"

    def test_reload(self, cache):
        """Reloading reads the file again."""
        cache.get(TemplateType.SONG)
        cache.reload(TemplateType.SONG)
        cache.get(TemplateType.SONG)
        assert cache.load_count == 2

    def test_load_from_bytes(self, temp_dir, template_bytes):
        """A template can be installed from bytes without any file."""
        cache = TemplateCache([str(temp_dir)])
        cache.load_from_bytes(TemplateType.SONG, template_bytes)
        assert cache.has_template(TemplateType.SONG)
        assert not cache.has_template(TemplateType.INFO)
        assert cache.get(TemplateType.SONG).name == "Template"
        assert cache.load_count == 0
