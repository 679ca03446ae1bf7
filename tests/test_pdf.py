"""Tests for the PDF report."""

import pytest

from rtapi.core.errors import RenderError
from rtapi.results.pdf import create_pdf, render_pdf


def test_render_pdf_in_memory(make_endpoint):
    document = render_pdf([make_endpoint("http://one.example", [3, 6, 9, 12])])

    assert document.startswith(b"%PDF")
    assert document.rstrip().endswith(b"%%EOF")


@pytest.mark.asyncio
async def test_create_pdf_writes_file(make_endpoint, tmp_path):
    output = tmp_path / "report.pdf"

    await create_pdf(
        [make_endpoint("http://one.example", [3, 6, 9]), make_endpoint("http://two.example", [30, 60, 90])],
        str(output),
    )

    assert output.read_bytes().startswith(b"%PDF")


@pytest.mark.asyncio
async def test_create_pdf_unwritable_path(make_endpoint, tmp_path):
    output = tmp_path / "missing-dir" / "report.pdf"

    with pytest.raises(RenderError):
        await create_pdf([make_endpoint("http://one.example", [1, 2])], str(output))
