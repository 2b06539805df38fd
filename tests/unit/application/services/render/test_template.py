"""Tests for the template loader."""

from pathlib import Path

import pytest
from PIL import Image

from playlistcard.application.services.render.template import TemplateLoader
from playlistcard.domain.exceptions import TemplateLoadError


class TestTemplateLoader:
    async def test_loads_rgba_template(self, template_path: Path) -> None:
        template = await TemplateLoader(template_path).load()
        assert template.mode == "RGBA"
        assert template.size == (1080, 1350)

    async def test_other_sizes_are_scaled(self, tmp_path: Path) -> None:
        path = tmp_path / "small.png"
        Image.new("RGB", (540, 675), "blue").save(path)

        template = await TemplateLoader(path).load()
        assert template.size == (1080, 1350)

    async def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(TemplateLoadError) as exc_info:
            await TemplateLoader(tmp_path / "missing.jpg").load()
        assert "missing.jpg" in exc_info.value.path

    async def test_undecodable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"definitely not a jpeg")
        with pytest.raises(TemplateLoadError):
            await TemplateLoader(path).load()
