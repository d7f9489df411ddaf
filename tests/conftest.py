from __future__ import annotations

import base64
from pathlib import Path

import fitz  # PyMuPDF
import pytest
from fastapi.testclient import TestClient

from logostudio import config
from logostudio.models import reset_engine


@pytest.fixture(autouse=True)
def out_dir(tmp_path: Path) -> Path:
    config.set_out_dir(tmp_path)
    reset_engine()
    return tmp_path


def make_png(width: int = 96, height: int = 96) -> bytes:
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), False)
    pix.set_rect(pix.irect, (30, 64, 175))
    pix.set_rect(fitz.IRect(0, 0, width // 2, height // 2), (245, 158, 11))
    return pix.tobytes("png")


@pytest.fixture
def logo_data_uri() -> str:
    return "data:image/png;base64," + base64.b64encode(make_png()).decode("ascii")


@pytest.fixture
def client() -> TestClient:
    from logostudio.api.server import create_app

    return TestClient(create_app())


def signup(client: TestClient, email: str = "owner@example.com", password: str = "correct-horse") -> dict:
    resp = client.post("/api/auth/signup", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    return resp.json()["user"]
