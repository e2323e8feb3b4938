"""Tests for livesite package exports and metadata."""

import pytest

import livesite


class TestPackageMetadata:
    """Package-level exports and metadata."""

    def test_version_string(self) -> None:
        assert livesite.__version__ == "0.1.0"

    def test_free_threading_declaration(self) -> None:
        assert livesite._Py_mod_gil == 0

    def test_all_exports_resolvable(self) -> None:
        for name in livesite.__all__:
            assert getattr(livesite, name) is not None

    def test_lazy_exports_are_the_real_objects(self) -> None:
        from livesite.app import create_app, serve
        from livesite.config import LiveSiteConfig, WatchSpec

        assert livesite.LiveSiteConfig is LiveSiteConfig
        assert livesite.WatchSpec is WatchSpec
        assert livesite.create_app is create_app
        assert livesite.serve is serve

    def test_invalid_attribute_raises(self) -> None:
        with pytest.raises(AttributeError, match="no attribute"):
            livesite.nonexistent_thing  # type: ignore[attr-defined]  # noqa: B018
