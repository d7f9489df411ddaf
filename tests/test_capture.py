from __future__ import annotations

import fitz  # PyMuPDF

from logostudio.cards.capture import PNG_SIGNATURE, MuPDFCardCapturer

from conftest import make_png


class DummyPixmap:
    width = 756
    height = 432

    def tobytes(self, fmt: str = "png") -> bytes:  # noqa: ARG002 - signature matches fitz
        return make_png(8, 8)


class DummyPage:
    def __init__(self) -> None:
        self.matrix = None

    def get_pixmap(self, matrix=None, alpha=True) -> DummyPixmap:  # noqa: ARG002 - signature matches fitz
        self.matrix = matrix
        return DummyPixmap()


class DummyDoc:
    def __init__(self) -> None:
        self.page = DummyPage()
        self.closed = False

    def __enter__(self) -> "DummyDoc":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001 - test helper
        self.closed = True

    def load_page(self, index: int) -> DummyPage:  # noqa: ARG002 - test helper
        return self.page


def test_capture_closes_document(monkeypatch) -> None:
    doc = DummyDoc()

    def fake_open(*args, **kwargs) -> DummyDoc:  # noqa: ARG001 - test helper
        return doc

    monkeypatch.setattr("logostudio.cards.capture.fitz.open", fake_open)
    image = MuPDFCardCapturer(scale=3.0).capture("<div>{{name}}</div>")
    assert doc.closed is True
    assert image.png.startswith(PNG_SIGNATURE)
    assert (image.width_px, image.height_px) == (756, 432)
    assert (doc.page.matrix.a, doc.page.matrix.d) == (3.0, 3.0)


def test_overflowing_card_is_clipped(caplog) -> None:
    caplog.set_level("INFO", logger="logostudio.cards.capture")
    html = "<div>" + "<p>line of text that keeps going</p>" * 80 + "</div>"
    image = MuPDFCardCapturer(scale=1.0).capture(html)
    assert (image.width_px, image.height_px) == (252, 144)
    assert "overflowed" in caplog.text

    with fitz.open(stream=image.png, filetype="png") as doc:
        assert doc.page_count == 1
